"""Enumerations shared by the intake SDK, server and client."""

import enum


class Role(str, enum.Enum):
    """Principal roles carried in a session credential.

    ``attorney`` is the elevated role with access to every case scope;
    ``client`` is restricted to the single scope it logged in with.
    """

    ATTORNEY = "attorney"
    CLIENT = "client"


class HiddenAnswerPolicy(str, enum.Enum):
    """What happens to a stored answer whose question is currently hidden.

    retain: keep the value (visibility is display-time only)
    clear:  drop the value when the answer map is saved
    """

    RETAIN = "retain"
    CLEAR = "clear"


class SaveStatus(str, enum.Enum):
    """Autosave indicator shown next to the form.

    Transitions:
        idle -> saving -> saved
        saving -> error   (user must edit again to retry)
    """

    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class WriteState(str, enum.Enum):
    """Lifecycle of a single debounced write.

    Transitions:
        pending -> superseded  (a newer edit arrived inside the window)
        pending -> committing -> committed
        committing -> failed   (store rejected or flush timed out)
    """

    PENDING = "pending"
    SUPERSEDED = "superseded"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "failed"
