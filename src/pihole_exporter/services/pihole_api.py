from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from pihole_exporter.errors import AuthError, FetchError, FetchTimeoutError
from pihole_exporter.schemas import (
    AuthRequest,
    AuthResponse,
    QueriesResponse,
    QueryInfo,
    StatsResponse,
    UpstreamInfo,
    UpstreamsResponse,
)
from pihole_exporter.services.aggregation import QUERIES_PAGE_LENGTH, WindowBoundary

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
SID_HEADER = "sid"

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


class PiholeApiClient:
    """Thin client for the Pi-hole admin API.

    Certificate verification is disabled on purpose: the appliance is normally
    reached over a private network with a self-issued certificate. Anyone
    exposing the API over an untrusted network should terminate TLS elsewhere.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.sid: str | None = None
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            verify=False,
            transport=transport,
            headers={"accept": "application/json"},
        )

    @property
    def authenticated(self) -> bool:
        return self.sid is not None

    def close(self) -> None:
        self._client.close()

    def authenticate(self, password: str) -> str:
        payload = AuthRequest(password=password).model_dump()
        try:
            response = self._client.post(
                "/api/auth",
                json=payload,
                headers={"content-type": "application/json"},
            )
            response.raise_for_status()
            auth = AuthResponse.model_validate(response.json())
        except httpx.HTTPStatusError as exc:
            raise AuthError(f"Pi-hole rejected authentication (HTTP {exc.response.status_code})") from exc
        except httpx.HTTPError as exc:
            raise AuthError(f"Pi-hole auth endpoint unreachable: {exc}") from exc
        except (ValueError, ValidationError) as exc:
            raise AuthError(f"Unexpected auth response from Pi-hole: {exc}") from exc
        self.sid = auth.session.sid
        return self.sid

    def fetch(self, path: str, params: dict[str, Any] | None = None) -> Any:
        headers = {SID_HEADER: self.sid} if self.sid is not None else None
        url = f"/api/{path.lstrip('/')}"
        try:
            response = self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            raise FetchTimeoutError(f"Timed out fetching {url}") from exc
        except httpx.HTTPStatusError as exc:
            raise FetchError(f"Fetching {url} returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Fetching {url} failed: {exc}") from exc
        except ValueError as exc:
            raise FetchError(f"Malformed JSON from {url}: {exc}") from exc

    def fetch_summary(self) -> StatsResponse:
        return self._fetch_model("stats/summary", StatsResponse)

    def fetch_upstreams(self) -> list[UpstreamInfo]:
        return self._fetch_model("stats/upstreams", UpstreamsResponse).upstreams

    def fetch_queries(self, window: WindowBoundary) -> list[QueryInfo]:
        params = {"from": window.start, "until": window.end, "length": QUERIES_PAGE_LENGTH}
        return self._fetch_model("queries", QueriesResponse, params=params).queries

    def _fetch_model(
        self,
        path: str,
        model: type[ResponseModel],
        params: dict[str, Any] | None = None,
    ) -> ResponseModel:
        payload = self.fetch(path, params=params)
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise FetchError(f"Unexpected {path} response shape: {exc.error_count()} validation error(s)") from exc
