"""Custom exception classes shared by the chunk store, merge engine and controller."""


class UploadsException(Exception):
    """
    Base exception class for all upload-related errors.

    Carries a human-readable message plus an optional detail string
    (usually the text of the underlying OS error).
    """

    def __init__(self, message: str, details: str = ""):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidRequestError(UploadsException):
    """
    Raised when caller input is malformed (missing fields, bad values).
    """
    pass


class FileMissingError(UploadsException):
    """
    Raised when the expected upload file field is absent from a request.
    """
    pass


class StorageIOError(UploadsException):
    """
    Raised when a directory or file operation fails at the OS boundary.
    """
    pass


class RateLimitExceededError(UploadsException):
    """
    Raised when a client exceeds the configured request rate.

    retry_after holds the seconds until the client's window resets.
    """

    def __init__(self, message: str, details: str = "", retry_after: float = 0.0):
        super().__init__(message, details)
        self.retry_after = retry_after
