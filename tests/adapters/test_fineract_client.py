from __future__ import annotations

import asyncio
import base64
from collections.abc import Callable

import httpx
import pytest

from kycstatus.adapters.fineract import FineractAPIError, FineractKycFetcher
from kycstatus.adapters.http_resilience import ResilientClient
from kycstatus.config import (
    FineractConfig,
    MissingConfigurationError,
    RateLimit,
    ResilienceConfig,
)
from kycstatus.config.fineract import TENANT_HEADER
from kycstatus.domain.ports import RecordFetcher
from tests.support.records import kyc_record

BASE_URL = "https://fineract.test/fineract-provider/api"


def _config() -> FineractConfig:
    return FineractConfig(
        username="mifos",
        password="password",
        resilience=ResilienceConfig(
            name="fineract",
            base_url=BASE_URL,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={TENANT_HEADER: "default", "Accept": "application/json"},
        ),
    )


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=BASE_URL,
            headers=dict(resilience.default_headers or {}),
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def _fetch(handler: Callable[[httpx.Request], httpx.Response], client_id: int = 7) -> object:
    async def scenario() -> object:
        async with FineractKycFetcher(
            config=_config(), client_factory=_make_client_factory(handler)
        ) as fetcher:
            return await fetcher.fetch_record(client_id)

    return asyncio.run(scenario())


def test_fetch_record_returns_kyc_payload() -> None:
    payload = kyc_record(pan=True, aadhaar=True, last_verified_on=[2024, 5, 17])
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=payload)

    assert _fetch(handler) == payload

    (request,) = seen
    assert request.method == "GET"
    assert request.url.path == "/fineract-provider/api/v1/clients/7/extend/kyc"
    assert request.headers[TENANT_HEADER] == "default"
    expected = base64.b64encode(b"mifos:password").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"


def test_missing_kyc_record_is_none() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"httpStatusCode": "404"})

    assert _fetch(handler) is None


def test_error_uses_globalisation_code() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            500,
            json={
                "httpStatusCode": "500",
                "defaultUserMessage": "Internal error",
                "userMessageGlobalisationCode": "error.msg.kyc.lookup.failed",
            },
        )

    with pytest.raises(FineractAPIError) as exc:
        _fetch(handler)

    assert str(exc.value) == "error.msg.kyc.lookup.failed"
    assert exc.value.status_code == 500


def test_error_falls_back_to_default_user_message() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "errors": [
                    {"defaultUserMessage": "Client id is invalid", "parameterName": "clientId"}
                ]
            },
        )

    with pytest.raises(FineractAPIError, match="Client id is invalid"):
        _fetch(handler)


def test_error_without_json_uses_http_reason() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="<html>denied</html>")

    with pytest.raises(FineractAPIError) as exc:
        _fetch(handler)

    assert str(exc.value) == "HTTP 403 Forbidden"
    assert exc.value.status_code == 403


def test_unexpected_payload_shape_is_rejected() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[kyc_record()])

    with pytest.raises(FineractAPIError, match="Unexpected"):
        _fetch(handler)


def test_client_is_reused_and_closed() -> None:
    created: list[ResilientClient] = []
    inner = _make_client_factory(lambda _: httpx.Response(200, json=kyc_record()))

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = inner(resilience)
        created.append(client)
        return client

    async def scenario() -> None:
        fetcher = FineractKycFetcher(config=_config(), client_factory=factory)
        assert isinstance(fetcher, RecordFetcher)
        await fetcher.fetch_record(1)
        await fetcher.fetch_record(2)
        await fetcher.aclose()

    asyncio.run(scenario())

    assert len(created) == 1
    assert created[0].is_closed


def test_fetcher_requires_configuration() -> None:
    with pytest.raises(MissingConfigurationError):
        FineractKycFetcher()
