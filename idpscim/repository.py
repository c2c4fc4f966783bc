"""Repositories that load and store the sync state on disk or in S3."""

from __future__ import annotations

import io
import json
from typing import IO, Any

from idpscim.model import State


class RepositoryError(Exception):
    """Raised when the state cannot be read from or written to a repository."""


def _decode_state(text: str) -> State | None:
    """Decode the first JSON value of ``text`` into a State.

    Returns None when ``text`` holds no JSON value at all.
    """
    stripped = text.lstrip()
    if not stripped:
        return None
    data, _ = json.JSONDecoder().raw_decode(stripped)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"cannot decode {type(data).__name__} into a state")
    try:
        return State.from_dict(data)
    except (AttributeError, TypeError) as err:
        raise ValueError(str(err)) from err


def _encode_state(state: State | None) -> str:
    return "null" if state is None else state.to_json()


def _as_text(data: str | bytes) -> str:
    return data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data


class DiskRepository:
    """State repository backed by an open, readable and writable file object."""

    def __init__(self, state_file: IO[Any] | None) -> None:
        if state_file is None:
            raise RepositoryError("disk: state file is nil")
        self._state_file = state_file

    def get_state(self) -> State:
        """Read the state from the file; an empty file gives an empty state."""
        try:
            state = _decode_state(_as_text(self._state_file.read()))
        except (ValueError, UnicodeDecodeError) as err:
            raise RepositoryError(f"disk: error decoding state: {err}") from err
        return state if state is not None else State()

    def set_state(self, state: State | None) -> None:
        """Write the state to the file as indented JSON followed by a newline."""
        payload = _encode_state(state) + "\n"
        try:
            if isinstance(self._state_file, io.TextIOBase):
                self._state_file.write(payload)
            else:
                self._state_file.write(payload.encode("utf-8"))
            self._state_file.flush()
        except (OSError, TypeError, ValueError) as err:
            raise RepositoryError(f"disk: error encoding state: {err}") from err


class S3Repository:
    """State repository that keeps the state as one object in an S3 bucket.

    ``client`` needs ``get_object(Bucket=, Key=)``, returning a mapping whose
    ``"Body"`` has ``read()``, and ``put_object(Bucket=, Key=, Body=)``.
    """

    def __init__(self, client: Any, bucket: str = "", key: str = "") -> None:
        if client is None:
            raise RepositoryError("s3: AWS S3 Client is nil")
        if not bucket:
            raise RepositoryError("s3: option WithBucket is nil")
        if not key:
            raise RepositoryError("s3: option WithKey is nil")
        self.client = client
        self.bucket = bucket
        self.key = key

    def get_state(self) -> State:
        """Fetch and decode the state object."""
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self.key)
        except Exception as err:
            raise RepositoryError(
                f"s3: error getting S3 object: bucket: {self.bucket}, error: {err}"
            ) from err

        body = response["Body"]
        try:
            raw = body.read()
        finally:
            close = getattr(body, "close", None)
            if callable(close):
                close()

        try:
            state = _decode_state(_as_text(raw))
        except (ValueError, UnicodeDecodeError) as err:
            raise RepositoryError(f"s3: error decoding S3 object: {err}") from err
        if state is None:
            raise RepositoryError("s3: error decoding S3 object: EOF")
        return state

    def set_state(self, state: State | None) -> None:
        """Encode the state as indented JSON and store it."""
        if state is None:
            raise RepositoryError("s3: state is nil")
        payload = _encode_state(state).encode("utf-8")
        try:
            self.client.put_object(Bucket=self.bucket, Key=self.key, Body=payload)
        except Exception as err:
            raise RepositoryError(f"s3: error putting S3 object: {err}") from err