"""Shared HTTP plumbing for live verification sources.

Live adapters subclass ``HttpProtectedAreaSource`` and call
``_request_json``, which maps every ``httpx`` failure mode onto the
``SourceError`` hierarchy so the orchestrator sees one uniform contract.

An ``httpx.AsyncClient`` can be injected (tests pass one built on
``httpx.MockTransport``, and several adapters may share one).  The caller
keeps ownership of an injected client: ``aclose`` never closes it.
Without one, a short-lived client is opened per request and closed
afterwards, so the adapter holds no connections between queries.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from parcel_compliance.sources.base import (
    ProtectedAreaSource,
    SourceResponseError,
    SourceTimeoutError,
    SourceUnavailableError,
)

if TYPE_CHECKING:
    from parcel_compliance.models.verification import SourceConfig

logger = logging.getLogger(__name__)

# HTTP statuses worth retrying (throttling and gateway trouble)
_RETRYABLE_STATUSES = frozenset({429, 502, 503, 504})


class HttpProtectedAreaSource(ProtectedAreaSource):
    """Base class for sources backed by a live JSON API."""

    #: Endpoint used when ``SourceConfig.api_base_url`` is empty.
    default_url: str = ""

    def __init__(
        self,
        config: SourceConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(config)
        self._client = client
        self._url = config.api_base_url or self.default_url

    @property
    def url(self) -> str:
        return self._url

    async def _request_json(self, method: str, **kwargs: Any) -> Any:
        """Send a request to the source endpoint and decode the JSON body.

        Raises:
            SourceTimeoutError: On connect/read/write/pool timeout.
            SourceUnavailableError: On transport failure or non-2xx status.
            SourceResponseError: If the body is not valid JSON.
        """
        headers = kwargs.pop("headers", {})
        if self.config.user_agent:
            headers.setdefault("User-Agent", self.config.user_agent)

        try:
            if self._client is not None:
                response = await self._client.request(
                    method, self._url, headers=headers, timeout=self.config.timeout_s, **kwargs
                )
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_s) as client:
                    response = await client.request(method, self._url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            msg = f"Request timed out after {self.config.timeout_s}s: {exc}"
            raise SourceTimeoutError(self.name, msg) from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            msg = f"HTTP {status} from {self._url}"
            raise SourceUnavailableError(
                self.name, msg, retryable=status in _RETRYABLE_STATUSES
            ) from exc
        except httpx.HTTPError as exc:
            msg = f"Request failed: {exc}"
            raise SourceUnavailableError(self.name, msg, retryable=True) from exc

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            msg = f"Response is not valid JSON: {exc}"
            raise SourceResponseError(self.name, msg) from exc

    def _float_param(self, key: str, default: float) -> float:
        """Read a numeric ``extra_params`` entry, falling back to *default*."""
        raw = self.config.extra_params.get(key)
        if raw is None or raw == "":
            return default
        return float(raw)
