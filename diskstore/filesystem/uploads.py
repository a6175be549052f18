"""
Uploaded-file abstraction consumed by Filesystem.put_file().

An upload exposes the client-supplied filename and a detachable byte
stream. Detaching hands ownership of the stream to the caller; afterwards
the upload no longer holds it.
"""

from typing import BinaryIO, Optional, Protocol, runtime_checkable

from fastapi import UploadFile


@runtime_checkable
class UploadedFile(Protocol):
    """Protocol for uploads accepted by Filesystem.put_file()."""

    @property
    def client_filename(self) -> Optional[str]:
        ...

    def detach_stream(self) -> Optional[BinaryIO]:
        ...


class StreamUpload:
    """Upload wrapping an already-open binary stream."""

    def __init__(self, stream: BinaryIO, client_filename: Optional[str] = None):
        self._stream: Optional[BinaryIO] = stream
        self._client_filename = client_filename

    @property
    def client_filename(self) -> Optional[str]:
        return self._client_filename

    def detach_stream(self) -> Optional[BinaryIO]:
        """Return the stream and release it; later calls return None."""
        stream, self._stream = self._stream, None
        return stream


class StarletteUpload:
    """Adapter for FastAPI/Starlette UploadFile objects."""

    def __init__(self, upload: UploadFile):
        self._upload = upload
        self._detached = False

    @property
    def client_filename(self) -> Optional[str]:
        return self._upload.filename

    def detach_stream(self) -> Optional[BinaryIO]:
        if self._detached or self._upload.file is None:
            return None
        self._detached = True
        return self._upload.file
