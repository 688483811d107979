"""
HTTP Remote Store Implementation

DESIGN DECISION: The backend is a small Express server persisting to a
JSON file, so plain requests sessions are all we need:
1. Calls run in a worker thread so concurrent fetches don't block the loop
2. requests.Session is not thread-safe, so every worker thread gets its own
3. Shared headers are sent with each request, not stored on a session
4. Every failure mode becomes a TransportError

TRADEOFFS:
- No retries here. A failed call is absorbed by the store, which falls
  back to local state; retrying would only delay that.
- No auth negotiation beyond the static x-api-key header.
"""

import asyncio
import threading
from typing import Any, Callable, Optional

import requests

from expense_sync.config import SyncSettings, get_settings
from expense_sync.services.remote.interface import (
    RemoteStoreInterface,
    Resource,
    TransportError,
)


class HttpRemoteStore(RemoteStoreInterface):
    """
    requests-based implementation of the remote store.

    Each resource maps to `{server_url}/{resource}` and, for single
    records, `{server_url}/{resource}/{id}`.
    """

    def __init__(
        self,
        settings: Optional[SyncSettings] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self._settings = settings or get_settings().sync
        self._session_factory = session_factory
        self._headers = {"Content-Type": "application/json"}
        if self._settings.api_key:
            self._headers["x-api-key"] = self._settings.api_key

        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    def _session(self) -> requests.Session:
        """Session owned by the calling thread, created on first use."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def _url(self, resource: Resource, entity_id: Optional[str] = None) -> str:
        url = f"{self._settings.server_url}/{resource.value}"
        if entity_id is not None:
            url = f"{url}/{entity_id}"
        return url

    def _request(
        self,
        method: str,
        url: str,
        body: Optional[dict] = None,
    ) -> requests.Response:
        """Perform one blocking request and translate failures."""
        try:
            response = self._session().request(
                method,
                url,
                json=body,
                headers=self._headers,
                timeout=self._settings.request_timeout_seconds,
            )
        except requests.Timeout as e:
            raise TransportError(f"{method} {url} timed out: {e}")
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}")

        if not response.ok:
            raise TransportError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def _decode(self, response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Malformed JSON from {response.url}: {e}")

    async def _call(
        self,
        method: str,
        resource: Resource,
        entity_id: Optional[str] = None,
        body: Optional[dict] = None,
    ) -> Any:
        url = self._url(resource, entity_id)
        response = await asyncio.to_thread(self._request, method, url, body)
        return self._decode(response)

    async def fetch(self, resource: Resource) -> Any:
        """GET a whole resource."""
        return await self._call("GET", resource)

    async def fetch_one(self, resource: Resource, entity_id: str) -> Optional[dict]:
        """GET one record; None when the backend says 404."""
        try:
            return await self._call("GET", resource, entity_id)
        except TransportError as e:
            if e.status_code == 404:
                return None
            raise

    async def create(self, resource: Resource, body: dict) -> Any:
        """POST a record and return the echo."""
        return await self._call("POST", resource, body=body)

    async def replace(
        self,
        resource: Resource,
        body: dict,
        entity_id: Optional[str] = None,
    ) -> Any:
        """PUT a replacement and return the echo."""
        return await self._call("PUT", resource, entity_id, body=body)

    async def delete(self, resource: Resource, entity_id: str) -> Any:
        """DELETE a record by id."""
        return await self._call("DELETE", resource, entity_id)

    def close(self) -> None:
        """Close every session opened by the worker threads."""
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
