"""AWS S3 storage driver."""

import logging
import mimetypes
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Dict, Iterator, Optional, Union

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from diskstore.filesystem.drivers.base import (
    DIRECTORY,
    FILE,
    StorageAttributes,
    StorageDriver,
    UnableToCheckExistence,
    UnableToCopyFile,
    UnableToCreateDirectory,
    UnableToDeleteDirectory,
    UnableToDeleteFile,
    UnableToGenerateTemporaryUrl,
    UnableToListContents,
    UnableToMoveFile,
    UnableToReadFile,
    UnableToRetrieveMetadata,
    UnableToWriteFile,
    normalize_path,
    resolve_expiration,
)

logger = logging.getLogger(__name__)

AWS_ERRORS = (ClientError, BotoCoreError)
MISSING_CODES = {"404", "NoSuchKey", "NotFound"}
VISIBILITY_ACL = {"public": "public-read", "private": "private"}
DELETE_BATCH_SIZE = 1000


def build_s3_client(config: Dict[str, Any]):
    """
    Create a boto3 S3 client from disk configuration.

    Credentials are only passed when configured; otherwise boto3 falls back
    to its default credential chain.

    Args:
        config: Disk configuration (key, secret, token, region, endpoint)

    Returns:
        boto3 S3 client
    """
    boto_config = Config(
        region_name=config.get("region") or "us-east-1",
        signature_version="s3v4",
    )

    session_kwargs = {}
    if config.get("key"):
        session_kwargs["aws_access_key_id"] = config["key"]
    if config.get("secret"):
        session_kwargs["aws_secret_access_key"] = config["secret"]
    if config.get("token"):
        session_kwargs["aws_session_token"] = config["token"]

    client_kwargs = {"config": boto_config}
    if config.get("endpoint"):
        client_kwargs["endpoint_url"] = config["endpoint"]

    if session_kwargs:
        session = boto3.Session(**session_kwargs)
        return session.client("s3", **client_kwargs)
    return boto3.client("s3", **client_kwargs)


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return str(error.response.get("Error", {}).get("Code", ""))
    return ""


class S3Driver(StorageDriver):
    """
    Storage driver for an S3 bucket.

    Paths map to object keys under an optional key prefix. Directories are
    virtual: shallow listings use the '/' delimiter and created directories
    are zero-byte 'dir/' marker objects.
    """

    supports_temporary_urls = True

    def __init__(self, client, bucket: str, prefix: str = ""):
        self.client = client
        self.bucket = bucket
        self.prefix = normalize_path(prefix)

    def _key(self, path: str) -> str:
        relative = normalize_path(path)
        if not self.prefix:
            return relative
        return f"{self.prefix}/{relative}" if relative else self.prefix

    def _strip_prefix(self, key: str) -> str:
        if self.prefix and key.startswith(f"{self.prefix}/"):
            return key[len(self.prefix) + 1:]
        return key

    def _upload_args(self, path: str, options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        options = options or {}
        args = {}

        mime = options.get("mimetype") or mimetypes.guess_type(path)[0]
        if mime:
            args["ContentType"] = mime

        visibility = options.get("visibility")
        if visibility is not None:
            if visibility not in VISIBILITY_ACL:
                raise UnableToWriteFile(path, f"Unknown visibility: {visibility}")
            args["ACL"] = VISIBILITY_ACL[visibility]

        if options.get("metadata"):
            args["Metadata"] = {k: str(v) for k, v in options["metadata"].items()}

        return args

    def file_exists(self, path: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=self._key(path))
            return True
        except AWS_ERRORS as e:
            if _error_code(e) in MISSING_CODES:
                return False
            raise UnableToCheckExistence(path, str(e)) from e

    def read(self, path: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(path))
            return response["Body"].read()
        except AWS_ERRORS as e:
            raise UnableToReadFile(path, str(e)) from e

    def read_stream(self, path: str) -> BinaryIO:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(path))
        except AWS_ERRORS as e:
            raise UnableToReadFile(path, str(e)) from e
        return response["Body"]

    def write(self, path: str, contents: bytes, options: Optional[Dict[str, Any]] = None) -> None:
        args = self._upload_args(path, options)
        try:
            self.client.put_object(
                Bucket=self.bucket, Key=self._key(path), Body=contents, **args)
        except AWS_ERRORS as e:
            raise UnableToWriteFile(path, str(e)) from e

    def write_stream(self, path: str, stream: BinaryIO, options: Optional[Dict[str, Any]] = None) -> None:
        args = self._upload_args(path, options)
        try:
            self.client.upload_fileobj(
                stream, self.bucket, self._key(path), ExtraArgs=args or None)
        except AWS_ERRORS as e:
            raise UnableToWriteFile(path, str(e)) from e

    def delete(self, path: str) -> None:
        try:
            exists = self.file_exists(path)
        except UnableToCheckExistence as e:
            raise UnableToDeleteFile(path, e.reason) from e
        if not exists:
            raise UnableToDeleteFile(path, "File does not exist.")

        try:
            self.client.delete_object(Bucket=self.bucket, Key=self._key(path))
        except AWS_ERRORS as e:
            raise UnableToDeleteFile(path, str(e)) from e

    def copy(self, source: str, destination: str) -> None:
        try:
            self.client.copy_object(
                Bucket=self.bucket,
                Key=self._key(destination),
                CopySource={"Bucket": self.bucket, "Key": self._key(source)},
            )
        except AWS_ERRORS as e:
            raise UnableToCopyFile(source, str(e)) from e

    def move(self, source: str, destination: str) -> None:
        try:
            self.copy(source, destination)
            self.client.delete_object(Bucket=self.bucket, Key=self._key(source))
        except UnableToCopyFile as e:
            raise UnableToMoveFile(source, e.reason) from e
        except AWS_ERRORS as e:
            raise UnableToMoveFile(source, str(e)) from e

    def _head(self, path: str) -> Dict[str, Any]:
        try:
            return self.client.head_object(Bucket=self.bucket, Key=self._key(path))
        except AWS_ERRORS as e:
            raise UnableToRetrieveMetadata(path, str(e)) from e

    def file_size(self, path: str) -> int:
        return int(self._head(path)["ContentLength"])

    def last_modified(self, path: str) -> int:
        return int(self._head(path)["LastModified"].timestamp())

    def mime_type(self, path: str) -> str:
        mime = self._head(path).get("ContentType")
        if not mime:
            raise UnableToRetrieveMetadata(path, "Object has no content type.")
        return mime

    def list_contents(self, directory: str = "", deep: bool = False) -> Iterator[StorageAttributes]:
        directory = normalize_path(directory)
        base_key = self._key(directory)
        listing_prefix = f"{base_key}/" if base_key else ""
        directory_depth = len(directory.split("/")) if directory else 0

        kwargs = {"Bucket": self.bucket, "Prefix": listing_prefix}
        if not deep:
            kwargs["Delimiter"] = "/"

        seen_directories = set()

        def directory_entry(path: str) -> Optional[StorageAttributes]:
            if not path or path == directory or path in seen_directories:
                return None
            seen_directories.add(path)
            return StorageAttributes(path=path, type=DIRECTORY)

        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**kwargs):
                for common in page.get("CommonPrefixes", []):
                    entry = directory_entry(self._strip_prefix(common["Prefix"].rstrip("/")))
                    if entry:
                        yield entry

                for obj in page.get("Contents", []):
                    path = self._strip_prefix(obj["Key"].rstrip("/"))
                    parts = path.split("/")

                    # Intermediate directories inferred from nested keys
                    if deep:
                        for depth in range(directory_depth + 1, len(parts)):
                            entry = directory_entry("/".join(parts[:depth]))
                            if entry:
                                yield entry

                    if obj["Key"].endswith("/"):
                        entry = directory_entry(path)
                        if entry:
                            yield entry
                        continue

                    yield StorageAttributes(
                        path=path,
                        type=FILE,
                        file_size=obj.get("Size"),
                        last_modified=int(obj["LastModified"].timestamp())
                        if obj.get("LastModified") else None,
                    )
        except AWS_ERRORS as e:
            raise UnableToListContents(directory, str(e)) from e

    def create_directory(self, path: str, options: Optional[Dict[str, Any]] = None) -> None:
        args = {}
        visibility = (options or {}).get("visibility")
        if visibility is not None:
            if visibility not in VISIBILITY_ACL:
                raise UnableToCreateDirectory(path, f"Unknown visibility: {visibility}")
            args["ACL"] = VISIBILITY_ACL[visibility]

        try:
            self.client.put_object(
                Bucket=self.bucket, Key=f"{self._key(path)}/", Body=b"", **args)
        except AWS_ERRORS as e:
            raise UnableToCreateDirectory(path, str(e)) from e

    def delete_directory(self, path: str) -> None:
        if not normalize_path(path):
            raise UnableToDeleteDirectory(path, "Refusing to delete the root directory.")

        prefix = f"{self._key(path)}/"
        try:
            keys = []
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))

            if not keys:
                raise UnableToDeleteDirectory(path, "Directory does not exist.")

            for start in range(0, len(keys), DELETE_BATCH_SIZE):
                batch = keys[start:start + DELETE_BATCH_SIZE]
                self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
        except AWS_ERRORS as e:
            raise UnableToDeleteDirectory(path, str(e)) from e

        logger.debug(f"Deleted {len(keys)} objects under s3://{self.bucket}/{prefix}")

    def temporary_url(self, path: str, expiration: Union[datetime, timedelta]) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": self._key(path)},
                ExpiresIn=resolve_expiration(expiration),
            )
        except AWS_ERRORS as e:
            raise UnableToGenerateTemporaryUrl(path, str(e)) from e
