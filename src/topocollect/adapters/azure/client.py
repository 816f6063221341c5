"""HTTP client for the Azure Resource Manager API."""

from __future__ import annotations

import asyncio
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from topocollect.adapters.http_resilience import ResilientClient
from topocollect.domain.errors import TransportError

from .schema import ArmErrorResponse, ListPage, TokenResponse

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator, Mapping

    from topocollect.config.azure import AzureConfig
    from topocollect.config.http_resilience import ResilienceConfig

    from .schema import ArmErrorDetail

log = getLogger(__name__)

_TOKEN_EXPIRY_MARGIN_SECONDS = 60.0


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


class AzureAPIError(TransportError):
    """Raised when an ARM or login request fails."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.code = code


@dataclass(slots=True)
class AzureTokenProvider:
    """Acquires and caches a client-credentials token for the management API."""

    config: AzureConfig
    clock: Callable[[], float] = time.monotonic
    _token: str | None = field(default=None, init=False, repr=False)
    _expires_at: float = field(default=0.0, init=False)

    async def token(self, client: ResilientClient) -> str:
        if self._token is not None and self.clock() < self._expires_at:
            return self._token

        url = f"{self.config.login_url.rstrip('/')}/{self.config.tenant_id}/oauth2/token"
        response = await _send(
            client.post(
                url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "resource": f"{self.config.resilience.base_url or ''}/",
                },
            ),
            what="Azure login",
        )
        payload = TokenResponse.model_validate(response.json())
        self._token = payload.access_token
        self._expires_at = self.clock() + payload.expires_in - _TOKEN_EXPIRY_MARGIN_SECONDS
        log.debug("Acquired Azure token for tenant %s", self.config.tenant_id)
        return self._token


class AzureSession:
    """Synchronous facade over one async client bound to a private event loop.

    Sessions are short-lived: a fetcher opens one per scope, iterates lazily and the
    session is closed once the iteration finishes or is abandoned.
    """

    def __init__(
        self,
        *,
        runner: asyncio.Runner,
        client: ResilientClient,
        tokens: AzureTokenProvider,
    ) -> None:
        self._runner = runner
        self._client = client
        self._tokens = tokens

    def get(
        self,
        path: str,
        *,
        api_version: str,
        params: Mapping[str, str] | None = None,
    ) -> dict[str, object]:
        query = {**(params or {}), "api-version": api_version}
        return self._runner.run(self._get_json(path, query))

    def iter_list(
        self,
        path: str,
        *,
        api_version: str,
        params: Mapping[str, str] | None = None,
    ) -> Iterator[dict[str, object]]:
        """Yield every item of an ARM list endpoint, following ``nextLink`` pages."""

        url: str | None = path
        query: dict[str, str] | None = {**(params or {}), "api-version": api_version}
        while url is not None:
            payload = self._runner.run(self._get_json(url, query))
            try:
                page = ListPage.model_validate(payload)
            except ValidationError as exc:
                raise AzureAPIError(f"Unexpected list payload from {url}") from exc
            yield from page.value
            url = page.next_link
            # nextLink already carries api-version and the skip token
            query = None

    async def _get_json(self, url: str, params: dict[str, str] | None) -> dict[str, object]:
        token = await self._tokens.token(self._client)
        response = await _send(
            self._client.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            ),
            what=f"GET {url}",
        )
        payload = response.json()
        if not isinstance(payload, dict):
            raise AzureAPIError(f"Unexpected payload from {url}")
        return payload


@dataclass(slots=True)
class AzureClient:
    config: AzureConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    tokens: AzureTokenProvider = field(init=False)

    def __post_init__(self) -> None:
        self.tokens = AzureTokenProvider(self.config)

    @contextmanager
    def session(self) -> Iterator[AzureSession]:
        with asyncio.Runner() as runner:
            client = self.client_factory(self.config.resilience)
            try:
                yield AzureSession(runner=runner, client=client, tokens=self.tokens)
            finally:
                runner.run(client.aclose())


async def _send(request: Awaitable[httpx.Response], *, what: str) -> httpx.Response:
    try:
        response = await request
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        detail = _error_detail(exc.response)
        log.error("%s failed with HTTP %s: %s", what, status, detail.message if detail else "")
        raise AzureAPIError(
            f"{what} failed with HTTP {status}"
            + (f": {detail.code}: {detail.message}" if detail else ""),
            status_code=status,
            code=detail.code if detail else None,
        ) from exc
    except httpx.HTTPError as exc:
        raise AzureAPIError(f"{what} failed: {exc}") from exc
    return response


def _error_detail(response: httpx.Response) -> ArmErrorDetail | None:
    try:
        return ArmErrorResponse.model_validate(response.json()).error
    except (ValueError, ValidationError):
        return None
