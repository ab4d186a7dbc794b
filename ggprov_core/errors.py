class GgProvError(Exception):
    """Base error for ggprov."""


class RecoverableError(GgProvError):
    """Indicates the operation can be retried safely."""


class PermanentError(GgProvError):
    """Indicates the operation should not be retried."""


class ValidationError(PermanentError):
    """Input validation failure."""


class NotFoundError(PermanentError):
    """A referenced group, template, task or device does not exist."""


class UpstreamError(RecoverableError):
    """A control-plane or store call failed."""


class PartialDeviceFailure(GgProvError):
    """A single device failed within an otherwise proceeding task."""

    def __init__(self, thing_name: str, message: str) -> None:
        super().__init__(message)
        self.thing_name = thing_name
        self.message = message


class TaskFailure(PermanentError):
    """The association task as a whole failed."""
