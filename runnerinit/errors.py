class RunnerInitError(Exception):
    """Base class for every error raised while composing user data."""

    def wrap(self, stage: str) -> "RunnerInitError":
        return type(self)(f"{stage}: {self}")


class InvalidInputError(RunnerInitError):
    """Raised when caller supplied data can not be used."""


class NotFoundError(InvalidInputError):
    """Raised when a lookup table has no entry for the requested key."""


class UnsupportedOSError(InvalidInputError):
    """Raised for OS types or architectures we have no payload for."""


class DecryptionError(RunnerInitError):
    pass


class TemplateError(RunnerInitError):
    """Raised when an install template fails to parse or render."""


class LogFolderError(RunnerInitError):
    pass
