"""HttpSnapshotClient - snapshot backend speaking the bulk-load/bulk-save protocol."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from kursplan.entities.exceptions import PersistenceError
from kursplan.logging import truncate_output
from kursplan.persistence.schema import Snapshot, parse_snapshot

logger = logging.getLogger(__name__)


class HttpSnapshotClient:
    """Loads and saves snapshots through a remote planning service.

    Responses use the ``{"data": ..., "error": ...}`` envelope.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Service URL including the API prefix, e.g. "http://host/api/v1"
            timeout: Request timeout in seconds
            transport: Custom transport (for testing)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        """Send a request and unwrap the response envelope.

        Raises:
            PersistenceError: On transport errors, non-2xx responses or an error envelope.
        """
        try:
            response = self.client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise PersistenceError(f"{method} {path} failed: {e}") from e

        if response.status_code >= 300:
            raise PersistenceError(
                f"{method} {path} failed: {response.status_code} - "
                f"{truncate_output(response.text, 500)}"
            )
        body = response.json()
        if isinstance(body, dict) and body.get("error"):
            raise PersistenceError(f"{method} {path} failed: {body['error']}")
        return body.get("data") if isinstance(body, dict) else body

    def load(self) -> Snapshot:
        """Fetch the current snapshot.

        Raises:
            PersistenceError: If the request fails.
            SnapshotSchemaError: If the payload is not a valid snapshot.
        """
        data = self._request("GET", "/bulk-load")
        snapshot = parse_snapshot(data)
        logger.info("Fetched snapshot from %s", self.base_url)
        return snapshot

    def save(self, snapshot: Snapshot) -> None:
        """Push a snapshot.

        Raises:
            PersistenceError: If the request fails.
        """
        self._request("POST", "/bulk-save", snapshot.to_wire())
        logger.debug("Pushed snapshot to %s", self.base_url)
