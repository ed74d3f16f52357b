"""intake_server — FastAPI REST API for the client intake SDK.

Exposes case schemas, answer maps, review comments and exports behind
bearer credentials issued by the Auth Gate.
"""
