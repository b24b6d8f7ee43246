# src/remote/realtime_db.py

"""Firebase Realtime Database REST client (reads, writes, live stream)."""

import json
import logging
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.remote.errors import (
    RemoteStoreError,
    StreamClosedError,
    TransientStoreError,
)

logger = logging.getLogger("shoplink.remote")

_RETRYABLE_STATUS: frozenset[int] = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class StreamEvent:
    """One server-sent event from a streaming REST request."""

    event: str
    path: str = "/"
    data: Any = None


class StreamEventParser:
    """Incremental parser for ``text/event-stream`` lines.

    Feed it decoded lines; it returns a :class:`StreamEvent` each time a
    blank line closes an event block.
    """

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []

    def feed(self, line: str) -> StreamEvent | None:
        line = line.rstrip("\r\n")
        if line:
            field_name, _, value = line.partition(":")
            value = value.removeprefix(" ")
            if field_name == "event":
                self._event = value
            elif field_name == "data":
                self._data.append(value)
            return None

        if not self._event:
            self._data.clear()
            return None
        event = self._build(self._event, "\n".join(self._data))
        self._event = ""
        self._data.clear()
        return event

    @staticmethod
    def _build(name: str, payload: str) -> StreamEvent:
        if name not in ("put", "patch"):
            return StreamEvent(event=name, data=payload or None)
        try:
            body = json.loads(payload) if payload else {}
        except json.JSONDecodeError:
            logger.warning("Discarding malformed %s event payload", name)
            return StreamEvent(event="keep-alive")
        if not isinstance(body, Mapping):
            return StreamEvent(event="keep-alive")
        return StreamEvent(
            event=name,
            path=str(body.get("path") or "/"),
            data=body.get("data"),
        )


def apply_event(tree: Any, path: str, data: Any, merge: bool = False) -> Any:
    """Return a new tree with *data* written at *path*.

    ``put`` replaces the subtree; ``patch`` (``merge=True``) writes each
    child of *data* individually. ``None`` deletes, and empty objects
    collapse to ``None`` the way the database itself reports them.
    """
    parts = [part for part in path.split("/") if part]
    if not parts:
        if not merge:
            return data
        merged: Any = dict(tree) if isinstance(tree, Mapping) else {}
        if isinstance(data, Mapping):
            for key, value in data.items():
                merged = apply_event(merged, str(key), value)
        return merged or None

    head, rest = parts[0], "/".join(parts[1:])
    node = dict(tree) if isinstance(tree, Mapping) else {}
    child = apply_event(node.get(head), rest, data, merge)
    if child is None:
        node.pop(head, None)
    else:
        node[head] = child
    return node or None


class RealtimeDatabaseClient:
    """Thin wrapper over the Realtime Database REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        auth: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or Settings.DATABASE_URL).rstrip("/")
        self._auth = auth if auth is not None else Settings.DATABASE_AUTH
        self._timeout = timeout or Settings.FETCH_TIMEOUT
        self.session = curl_requests.Session()

    def url(self, path: str) -> str:
        """REST URL for a database path."""
        if not self.base_url:
            raise RemoteStoreError("SHOPLINK_DATABASE_URL is not configured")
        clean = path.strip("/")
        url = f"{self.base_url}/{clean}.json"
        if self._auth:
            url += f"?auth={self._auth}"
        return url

    def _check(self, resp: Any, path: str) -> Any:
        status = resp.status_code
        if status == 200:
            try:
                return resp.json()
            except ValueError as exc:
                raise TransientStoreError(
                    f"Malformed response body for {path}"
                ) from exc
        if status == 404:
            return None
        if status in _RETRYABLE_STATUS:
            raise TransientStoreError(f"HTTP {status} for {path}")
        raise RemoteStoreError(f"HTTP {status} for {path}: {resp.text[:200]}")

    def _request(
        self,
        method: str,
        path: str,
        payload: Any = None,
    ) -> Any:
        url = self.url(path)
        try:
            resp = self.session.request(
                method,
                url,
                json=payload,
                timeout=self._timeout,
            )
        except Exception as exc:
            logger.warning(
                "%s %s failed: %s", method, path, exc, exc_info=True,
            )
            raise TransientStoreError(str(exc)) from exc
        return self._check(resp, path)

    def get(self, path: str) -> Any:
        """Read the value at *path*; ``None`` when nothing is stored."""
        return self._request("GET", path)

    def put(self, path: str, payload: Any) -> None:
        """Overwrite the value at *path*."""
        self._request("PUT", path, payload)

    def post(self, path: str, payload: Any) -> str:
        """Append under *path* with a generated key and return the key."""
        body = self._request("POST", path, payload)
        if not isinstance(body, Mapping) or "name" not in body:
            raise RemoteStoreError(f"Unexpected push response for {path}")
        return str(body["name"])

    async def stream(self, path: str) -> AsyncIterator[StreamEvent]:
        """Yield live events for *path* until the server closes the stream.

        The first event is always a ``put`` of the full current value.
        Raises :class:`StreamClosedError` on ``cancel``/``auth_revoked``
        and :class:`TransientStoreError` on transport failures.
        """
        url = self.url(path)
        parser = StreamEventParser()
        try:
            async with curl_requests.AsyncSession() as session:
                async with session.stream(
                    "GET",
                    url,
                    headers={"Accept": "text/event-stream"},
                    timeout=Settings.STREAM_READ_TIMEOUT,
                ) as resp:
                    self._check_stream_status(resp, path)
                    async for raw_line in resp.aiter_lines():
                        line = (
                            raw_line.decode("utf-8")
                            if isinstance(raw_line, bytes)
                            else raw_line
                        )
                        event = parser.feed(line)
                        if event is None or event.event == "keep-alive":
                            continue
                        if event.event in ("cancel", "auth_revoked"):
                            raise StreamClosedError(
                                f"Stream {event.event} for {path}"
                            )
                        yield event
        except RemoteStoreError:
            raise
        except Exception as exc:
            raise TransientStoreError(
                f"Stream for {path} dropped: {exc}"
            ) from exc

    @staticmethod
    def _check_stream_status(resp: Any, path: str) -> None:
        status = resp.status_code
        if status == 200:
            return
        if status in _RETRYABLE_STATUS:
            raise TransientStoreError(f"HTTP {status} streaming {path}")
        raise RemoteStoreError(f"HTTP {status} streaming {path}")
