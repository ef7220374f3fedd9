"""HTTP client for the Fineract KYC extension API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from kycstatus.adapters.http_resilience import ResilientClient
from kycstatus.config.fineract import get_fineract_config
from kycstatus.domain.ports.fetching import RawRecord, RecordFetcher

from .schema import FineractErrorResponse

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from kycstatus.config.fineract import FineractConfig
    from kycstatus.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

KYC_DETAILS_PATH = "v1/clients/{client_id}/extend/kyc"


class FineractAPIError(RuntimeError):
    """Raised when Fineract answers a KYC lookup with an error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FineractKycFetcher:
    """``RecordFetcher`` reading ``GET /v1/clients/{clientId}/extend/kyc``.

    A 404 means the client has no KYC record yet and is reported as ``None``.
    The underlying HTTP client is opened lazily and reused until ``aclose``.
    """

    def __init__(
        self,
        *,
        config: FineractConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config or get_fineract_config()
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def fetch_record(self, entity_id: int) -> RawRecord | None:
        client = self._ensure_client()
        response = await client.get(
            KYC_DETAILS_PATH.format(client_id=entity_id),
            auth=self._config.auth,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            log.debug("No KYC record for client %s", entity_id)
            return None
        if response.is_error:
            raise _api_error(response)

        payload = response.json()
        if not isinstance(payload, dict):
            raise FineractAPIError(
                "Unexpected Fineract KYC response payload",
                status_code=response.status_code,
            )
        return payload

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def __aenter__(self) -> FineractKycFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _ensure_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self._client_factory(self._config.resilience)
        return self._client


def _api_error(response: httpx.Response) -> FineractAPIError:
    message: str | None = None
    try:
        message = FineractErrorResponse.model_validate(response.json()).user_message()
    except ValueError:
        log.debug("Fineract error response without a JSON body (HTTP %s)", response.status_code)
    if not message:
        message = f"HTTP {response.status_code} {response.reason_phrase}".strip()
    log.debug("Fineract KYC lookup failed: %s", message)
    return FineractAPIError(message, status_code=response.status_code)


if TYPE_CHECKING:
    _fetcher_check: RecordFetcher[int] = FineractKycFetcher()
