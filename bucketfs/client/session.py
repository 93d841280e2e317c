# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Session configuration for the object store client.

A Session carries everything needed to build an authenticated client: region,
credentials (or a named profile), an optional endpoint for S3-compatible
services, and the timeouts that bound every store call.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigurationError

ENV_PREFIX = "BUCKETFS_"
DEFAULT_REGION = "us-east-1"

def _env(name: str, *fallbacks: str) -> Optional[str]:
    for candidate in (ENV_PREFIX + name,) + fallbacks:
        value = os.environ.get(candidate)
        if value is not None and value.strip():
            return value.strip()
    return None

def _env_number(name: str, default, cast):
    raw = _env(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}")

@dataclass
class Session:
    """
    Connection settings for an S3-compatible object store.

    Attributes:
        region (str): Region used for signing requests.
        profile (str, optional): Named profile from the shared credentials file.
        endpoint_url (str, optional): Endpoint of an S3-compatible service (MinIO, R2, ...).
        access_key_id (str, optional): Static access key; overrides the profile.
        secret_access_key (str, optional): Static secret key.
        session_token (str, optional): Session token for temporary credentials.
        addressing_style (str): "auto", "path" or "virtual".
        connect_timeout (float): Seconds to wait for a connection.
        read_timeout (float): Seconds to wait for a response.
        max_attempts (int): Attempts per call made by the client's retry decorator.
    """
    region: str = DEFAULT_REGION
    profile: Optional[str] = None
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    addressing_style: str = "auto"
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    max_attempts: int = 5

    def __post_init__(self):
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise ConfigurationError("access_key_id and secret_access_key must be set together")
        if self.addressing_style not in ("auto", "path", "virtual"):
            raise ConfigurationError(f"Invalid addressing style: {self.addressing_style}")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")

    @classmethod
    def from_env(cls) -> "Session":
        """
        Build a Session from BUCKETFS_* environment variables.

        Region and profile fall back to the standard AWS variables.

        Returns:
            Session: The configured session.

        Raises:
            ConfigurationError: If a value is malformed or credentials are incomplete.
        """
        return cls(
            region=_env("REGION", "AWS_REGION", "AWS_DEFAULT_REGION") or DEFAULT_REGION,
            profile=_env("PROFILE", "AWS_PROFILE"),
            endpoint_url=_env("ENDPOINT_URL"),
            access_key_id=_env("ACCESS_KEY_ID"),
            secret_access_key=_env("SECRET_ACCESS_KEY"),
            session_token=_env("SESSION_TOKEN"),
            addressing_style=_env("ADDRESSING_STYLE") or "auto",
            connect_timeout=_env_number("CONNECT_TIMEOUT", 10.0, float),
            read_timeout=_env_number("READ_TIMEOUT", 60.0, float),
            max_attempts=_env_number("MAX_ATTEMPTS", 5, int),
        )
