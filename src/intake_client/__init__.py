"""intake_client — async client for the intake server.

Public API:
    IntakeClient    — httpx client for every server route
    ClientSession   — explicit bearer credential passed to each call
    DebouncedSaver  — debounced whole-map autosave with teardown flush
    PendingWrite    — one scheduled write and its state
"""

from intake_client.api import IntakeClient, error_from_response
from intake_client.autosave import DebouncedSaver, PendingWrite
from intake_client.session import ClientSession

__all__ = [
    "ClientSession",
    "DebouncedSaver",
    "IntakeClient",
    "PendingWrite",
    "error_from_response",
]
