# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Retry Module.

This module provides a retry decorator with exponential backoff for object store
client operations. It handles throttling, server errors and network issues by
automatically retrying failed operations with increasing delays between attempts,
and converts every botocore failure into a bucketfs exception.

Functions:
    retry: Decorator for retrying functions with exponential backoff.
    _convert_client_error: Helper function to convert botocore errors to bucketfs exceptions.
"""
import time
from functools import wraps
from typing import Type, Callable, Any, Tuple

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

from ..utils import logger
from .exceptions import AuthenticationError, BucketError, BucketFSError, ObjectError, ObjectNotFoundError

RETRYABLE_ERROR_CODES = {
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "RequestTimeout",
    "InternalError",
    "ServiceUnavailable",
}

NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}
AUTH_ERROR_CODES = {"InvalidAccessKeyId", "SignatureDoesNotMatch", "ExpiredToken", "InvalidToken"}

RETRYABLE_NETWORK_ERRORS = (
    EndpointConnectionError,
    ConnectionClosedError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))

def _http_status(e: ClientError) -> int:
    return int(e.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0)

def _is_retryable(e: Exception) -> bool:
    if isinstance(e, RETRYABLE_NETWORK_ERRORS):
        return True
    if isinstance(e, ClientError):
        return _error_code(e) in RETRYABLE_ERROR_CODES or _http_status(e) >= 500
    return False

def _convert_client_error(e: Exception, operation: str = None) -> BucketFSError:
    """
    Convert botocore errors to appropriate bucketfs errors.

    Args:
        e (Exception): The botocore error to convert.
        operation (str, optional): The operation being performed. Defaults to None.

    Returns:
        BucketFSError: The converted error.
    """
    if isinstance(e, NoCredentialsError):
        return AuthenticationError("No credentials available for the object store")
    if isinstance(e, (ConnectTimeoutError, ReadTimeoutError)):
        return BucketFSError("Request timed out", code="ERR_TIMEOUT")
    if isinstance(e, (EndpointConnectionError, ConnectionClosedError)):
        return BucketFSError("Service unavailable", code="ERR_UNAVAILABLE")
    if not isinstance(e, ClientError):
        return BucketFSError(str(e))

    code = _error_code(e)
    status = _http_status(e)
    error_msg = str(e.response.get("Error", {}).get("Message") or e)

    if code == "NoSuchBucket":
        return BucketError("Bucket does not exist", operation="ACCESS")
    if code in NOT_FOUND_CODES or (status == 404 and operation == "HEAD"):
        return ObjectNotFoundError("Object does not exist", operation=operation)
    if code in AUTH_ERROR_CODES:
        return AuthenticationError(error_msg)
    if code in ("AccessDenied", "403") or status == 403:
        return ObjectError("Access denied to object", operation=operation)
    if code == "NoSuchUpload":
        return ObjectError("Multipart upload does not exist", operation=operation)
    if code in ("InvalidPart", "InvalidPartOrder"):
        return ObjectError(f"Invalid part list: {error_msg}", operation=operation)
    if code == "EntityTooSmall":
        return ObjectError("Part smaller than the minimum allowed size", operation=operation)
    if code in ("SlowDown", "Throttling", "ThrottlingException"):
        return BucketFSError("Rate limit exceeded", code="ERR_RATE_LIMIT")
    if status >= 500:
        return BucketFSError("Internal server error", code="ERR_INTERNAL")
    return ObjectError(error_msg, operation=operation)

def retry(
    max_attempts: int = 5,
    initial_backoff: float = 0.1,
    max_backoff: float = 5.0,
    backoff_multiplier: float = 2.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = (ClientError, BotoCoreError)
) -> Callable:
    """
    Decorator for retrying a client method with exponential backoff.

    The attempt count is taken from the client instance's ``max_attempts``
    attribute when present, so a Session can tune it.

    Args:
        max_attempts (int): Maximum number of attempts. Defaults to 5.
        initial_backoff (float): Initial backoff time in seconds. Defaults to 0.1.
        max_backoff (float): Maximum backoff time in seconds. Defaults to 5.0.
        backoff_multiplier (float): Multiplier for exponential backoff. Defaults to 2.0.
        retryable_exceptions (Tuple[Type[Exception], ...]): Exceptions that are inspected
            for a retry. Defaults to (ClientError, BotoCoreError).

    Returns:
        Callable: A decorator that wraps the function.
    """
    def decorator(func: Callable) -> Callable:
        operation = func.__name__.split("_")[0].upper()

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            """
            Executes the function with retry logic and exponential backoff.

            Returns:
                Any: Result of the function call.

            Raises:
                BucketFSError: If the failure is not retryable or all attempts fail.
            """
            attempts = max_attempts
            if args and isinstance(getattr(args[0], "max_attempts", None), int):
                attempts = args[0].max_attempts
            last_exception = None
            backoff = initial_backoff

            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e
                    if not _is_retryable(e):
                        logger.debug(f"Non-retryable error during {func.__name__}: {e}")
                        raise _convert_client_error(e, operation) from e

                    logger.warning(f"Retryable error during {func.__name__}. Attempt {attempt + 1}/{attempts}. Retrying after {backoff:.2f}s: {e}")
                    if attempt < attempts - 1:
                        time.sleep(backoff)
                        backoff = min(backoff * backoff_multiplier, max_backoff)

            logger.error(f"{func.__name__} failed after {attempts} attempts: {last_exception}")
            raise _convert_client_error(last_exception, operation) from last_exception

        return wrapper
    return decorator
