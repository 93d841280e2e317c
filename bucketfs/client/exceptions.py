# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
class BucketFSError(Exception):
    """Base exception for bucketfs errors."""
    def __init__(self, message: str, code: str = "ERR_UNKNOWN"):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")

class AuthenticationError(BucketFSError):
    """Authentication failed."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_AUTH")

class BucketError(BucketFSError):
    """Bucket operation failed."""
    def __init__(self, message: str, operation: str = None):
        code = "ERR_BUCKET"
        if operation:
            code = f"ERR_BUCKET_{operation.upper()}"
        super().__init__(message, code=code)

class ObjectError(BucketFSError):
    """Object operation failed."""
    def __init__(self, message: str, operation: str = None):
        code = "ERR_OBJECT"
        if operation:
            code = f"ERR_OBJECT_{operation.upper()}"
        self.operation = operation
        super().__init__(message, code=code)

class ObjectNotFoundError(ObjectError):
    """The object (or range) addressed by the request does not exist."""

class ConfigurationError(BucketFSError):
    """Configuration or credential error."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_CONFIG")

class ModeMismatchError(BucketFSError):
    """Read on a write-mode handle, or write on a read-mode handle."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_MODE")

class HandleClosedError(BucketFSError):
    """Operation on a handle that has already been closed."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_CLOSED")

class UnsupportedSeekError(BucketFSError):
    """Seek relative to the end of an object (its size is unknown)."""
    def __init__(self, message: str = "seeking relative to the end is not supported"):
        super().__init__(message, code="ERR_SEEK_UNSUPPORTED")

class InvalidSeekError(BucketFSError):
    """Seek to a negative position or with an unknown whence."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_SEEK_INVALID")

class PartSizeTooSmallError(BucketFSError):
    """Multipart part size below the store minimum."""
    def __init__(self, size: int, minimum: int):
        self.size = size
        self.minimum = minimum
        super().__init__(f"part size {size} is below the minimum of {minimum} bytes", code="ERR_PART_SIZE")

class UploadStateError(BucketFSError):
    """Multipart session call not valid in the session's current state."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_UPLOAD_STATE")

class StoreOperationFailed(BucketFSError):
    """
    A store call made on behalf of a filesystem operation failed.

    Attributes:
        operation (str): The filesystem operation being performed (e.g. "Read", "Close").
        key (str): The object key involved.
        cause (Exception): The underlying failure.
    """
    def __init__(self, operation: str, key: str, cause: Exception):
        self.operation = operation
        self.key = key
        self.cause = cause
        super().__init__(f"{operation} {key}: {cause}", code=f"ERR_STORE_{operation.upper()}")

    @property
    def is_not_found(self) -> bool:
        """True when the underlying failure is a missing object."""
        return isinstance(self.cause, ObjectNotFoundError)
