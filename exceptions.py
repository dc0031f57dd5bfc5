class PrivateVoiceError(Exception):
    """Base class for errors raised by the channel lifecycle."""


class ValidationFailure(PrivateVoiceError):
    """A creation request was refused before anything was created.

    ``message`` is safe to send back to the user who issued the command.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PlatformCallFailure(PrivateVoiceError):
    """A call to the chat platform failed."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        text = f"Platform call '{operation}' failed"
        if detail:
            text = f"{text}: {detail}"
        super().__init__(text)
