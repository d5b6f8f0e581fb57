"""Seekable read-only view of an S3 object."""

from __future__ import annotations

import io

from frgmnt.errors import SourceError

S3_SCHEME = "s3://"


def is_s3_uri(value: str) -> bool:
    return value.startswith(S3_SCHEME)


def parse_s3_uri(uri: str) -> tuple[str, str]:
    if not is_s3_uri(uri):
        raise ValueError(f"not an s3 uri: {uri}")
    bucket, _, key = uri[len(S3_SCHEME):].partition("/")
    if not bucket or not key:
        raise ValueError(f"s3 uri must be s3://bucket/key: {uri}")
    return bucket, key


class S3ObjectSource:
    """Reads an object with ranged GETs so only requested bytes are fetched."""

    def __init__(self, client, bucket: str, key: str) -> None:
        self._client = client
        self._bucket = bucket
        self._key = key
        try:
            response = self._client.head_object(Bucket=bucket, Key=key)
        except Exception as exc:
            raise SourceError(f"failed to stat {self.uri}: {exc}") from exc
        size = response.get("ContentLength")
        if not isinstance(size, int) or size < 0:
            raise SourceError(f"{self.uri} has no valid ContentLength")
        self._size = size
        self._position = 0
        self._closed = False

    @property
    def uri(self) -> str:
        return f"{S3_SCHEME}{self._bucket}/{self._key}"

    @property
    def size(self) -> int:
        return self._size

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        self._check_open()
        return self._position

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_open()
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = self._size + offset
        else:
            raise ValueError(f"invalid whence: {whence}")
        if position < 0:
            raise ValueError(f"negative seek position {position}")
        self._position = position
        return position

    def read(self, size: int | None = -1) -> bytes:
        self._check_open()
        remaining = max(self._size - self._position, 0)
        if size is None or size < 0 or size > remaining:
            size = remaining
        if size == 0:
            return b""
        end = self._position + size - 1
        try:
            response = self._client.get_object(
                Bucket=self._bucket,
                Key=self._key,
                Range=f"bytes={self._position}-{end}",
            )
            data = response["Body"].read()
        except Exception as exc:
            raise SourceError(
                f"failed to read {self.uri} at offset {self._position}: {exc}"
            ) from exc
        self._position += len(data)
        return data

    def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed source")
