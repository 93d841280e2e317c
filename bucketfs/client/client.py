# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Object store client.

ObjectStoreClient implements the :class:`~bucketfs.client.store.ObjectStore`
surface on top of boto3, so bucketfs works against AWS S3 and any
S3-compatible service (MinIO, Cloudflare R2, Ceph RGW, ...). Every public
method is wrapped by the :func:`~bucketfs.client.retry.retry` decorator, which
retries transient failures and converts botocore errors into bucketfs
exceptions.
"""

import io
from typing import BinaryIO, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ..utils import logger
from .exceptions import ConfigurationError
from .retry import retry
from .session import Session
from .types import CompletedPart, HeadObjectOutput, ListObjectsOptions, ListObjectsPage, ObjectSummary

def _is_invalid_range(e: ClientError) -> bool:
    code = str(e.response.get("Error", {}).get("Code", ""))
    status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code == "InvalidRange" or status == 416

def _split_copy_source(copy_source: str):
    source_bucket, sep, source_key = copy_source.lstrip('/').partition('/')
    if not sep or not source_bucket or not source_key:
        raise ValueError(f"copy_source must be 'bucket/key', got {copy_source!r}")
    return source_bucket, source_key

class ObjectStoreClient:
    """
    boto3-backed client for an S3-compatible object store.

    The client is meant to be created once per process and shared by every
    FileSystem, Handle and upload session.

    Attributes:
        session (Session): Connection settings the client was built from.
        max_attempts (int): Attempts per call, read by the retry decorator.
    """

    def __init__(self, session: Optional[Session] = None, client=None):
        """
        Initialize the client.

        Args:
            session (Session, optional): Connection settings. Defaults to Session.from_env().
            client (optional): A pre-built boto3 S3 client. When given, ``session``
                only supplies the retry settings.

        Raises:
            ConfigurationError: If the boto3 client cannot be created.
        """
        self.session = session or Session.from_env()
        self.max_attempts = self.session.max_attempts
        if client is not None:
            self._client = client
            return

        config = Config(
            connect_timeout=self.session.connect_timeout,
            read_timeout=self.session.read_timeout,
            retries={"total_max_attempts": 1, "mode": "standard"},
            s3={"addressing_style": self.session.addressing_style},
        )
        try:
            boto_session = boto3.session.Session(
                profile_name=self.session.profile,
                region_name=self.session.region,
            )
            self._client = boto_session.client(
                "s3",
                endpoint_url=self.session.endpoint_url,
                aws_access_key_id=self.session.access_key_id,
                aws_secret_access_key=self.session.secret_access_key,
                aws_session_token=self.session.session_token,
                config=config,
            )
        except Exception as e:
            raise ConfigurationError(f"Failed to create object store client: {e}") from e
        logger.info(f"Object store client ready (region={self.session.region}, endpoint={self.session.endpoint_url or 'default'})")

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        close = getattr(self._client, "close", None)
        if callable(close):
            close()

    @retry()
    def head_object(self, bucket: str, key: str) -> HeadObjectOutput:
        response = self._client.head_object(Bucket=bucket, Key=key)
        return HeadObjectOutput(
            content_length=response.get("ContentLength", 0),
            last_modified=response.get("LastModified"),
            etag=response.get("ETag", ""),
            content_type=response.get("ContentType"),
        )

    @retry()
    def get_object(self, bucket: str, key: str) -> bytes:
        response = self._client.get_object(Bucket=bucket, Key=key)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    @retry()
    def get_object_stream(self, bucket: str, key: str, start: int = 0) -> BinaryIO:
        """
        Open a streaming body for an object.

        Args:
            bucket (str): Bucket name.
            key (str): Object key.
            start (int, optional): First byte to stream. Defaults to 0.

        Returns:
            BinaryIO: A readable stream; empty when ``start`` is past the end.
        """
        kwargs = {"Bucket": bucket, "Key": key}
        if start > 0:
            kwargs["Range"] = f"bytes={start}-"
        try:
            response = self._client.get_object(**kwargs)
        except ClientError as e:
            if start > 0 and _is_invalid_range(e):
                return io.BytesIO(b"")
            raise
        return response["Body"]

    @retry()
    def get_object_range(self, bucket: str, key: str, start: int, end: int) -> bytes:
        """
        Fetch the half-open byte range ``[start, end)`` of an object.

        Returns:
            bytes: The bytes in range; shorter at the end of the object and
            empty when ``start`` is past the end.
        """
        if end <= start:
            return b""
        try:
            response = self._client.get_object(Bucket=bucket, Key=key, Range=f"bytes={start}-{end - 1}")
        except ClientError as e:
            if _is_invalid_range(e):
                return b""
            raise
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    @retry()
    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        self._client.put_object(Bucket=bucket, Key=key, Body=data)

    @retry()
    def delete_object(self, bucket: str, key: str) -> None:
        self._client.delete_object(Bucket=bucket, Key=key)

    @retry()
    def copy_object(self, bucket: str, copy_source: str, key: str) -> None:
        source_bucket, source_key = _split_copy_source(copy_source)
        self._client.copy_object(
            Bucket=bucket,
            Key=key,
            CopySource={"Bucket": source_bucket, "Key": source_key},
        )

    @retry()
    def list_objects_page(self, bucket: str, options: ListObjectsOptions) -> ListObjectsPage:
        """
        Fetch one page of a ListObjectsV2 listing.

        Args:
            bucket (str): Bucket name.
            options (ListObjectsOptions): Prefix, page size and continuation token.

        Returns:
            ListObjectsPage: The page, with the token for the next one when truncated.
        """
        kwargs = {"Bucket": bucket, "Prefix": options.prefix or ""}
        if options.max_keys:
            kwargs["MaxKeys"] = options.max_keys
        if options.continuation_token:
            kwargs["ContinuationToken"] = options.continuation_token
        response = self._client.list_objects_v2(**kwargs)
        objects = [
            ObjectSummary(
                key=item["Key"],
                size=item.get("Size", 0),
                last_modified=item.get("LastModified"),
                etag=item.get("ETag", ""),
            )
            for item in response.get("Contents", []) or []
        ]
        return ListObjectsPage(
            objects=objects,
            is_truncated=bool(response.get("IsTruncated")),
            next_continuation_token=response.get("NextContinuationToken"),
        )

    @retry()
    def create_multipart_upload(self, bucket: str, key: str) -> str:
        response = self._client.create_multipart_upload(Bucket=bucket, Key=key)
        return response["UploadId"]

    @retry()
    def upload_part(self, bucket: str, key: str, upload_id: str, part_number: int, data: bytes) -> str:
        response = self._client.upload_part(
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            PartNumber=part_number,
            Body=data,
        )
        return response["ETag"]

    @retry()
    def complete_multipart_upload(self, bucket: str, key: str, upload_id: str, parts: List[CompletedPart]) -> None:
        self._client.complete_multipart_upload(
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={
                "Parts": [{"ETag": part.etag, "PartNumber": part.part_number} for part in parts],
            },
        )

    @retry()
    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        self._client.abort_multipart_upload(Bucket=bucket, Key=key, UploadId=upload_id)
