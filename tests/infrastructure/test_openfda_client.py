"""openFDA client — request shape and error mapping (httpx.MockTransport).

Tests:
    - Query params: search expression, clamped limit, api_key when configured
    - 200 → validated payload
    - 404 → empty payload (no matches), not an error, logged with the raw drug_query
    - 5xx → UpstreamError with status and body excerpt
    - Transport failure / timeout / bad JSON → UpstreamError
"""

import logging

import httpx
import pytest

from rxguard.core.errors import UpstreamError
from rxguard.infrastructure.openfda_client import OpenFdaClient


def _client(handler, api_key=None) -> OpenFdaClient:
    return OpenFdaClient(
        base_url="https://api.fda.gov/drug/label.json",
        api_key=api_key,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_sends_search_limit_and_key():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"results": []})

    client = _client(handler, api_key="k-123")
    await client.fetch_label_candidates('Advil "PM"', limit=99)
    await client.aclose()

    assert seen["params"]["limit"] == "25"
    assert seen["params"]["api_key"] == "k-123"
    assert seen["params"]["search"] == (
        '(openfda.brand_name:"Advil PM" OR openfda.generic_name:"Advil PM" '
        'OR openfda.substance_name:"Advil PM")'
    )


@pytest.mark.asyncio
async def test_no_api_key_param_when_unset():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"results": []})

    await _client(handler).fetch_label_candidates("advil")
    assert "api_key" not in seen["params"]
    assert seen["params"]["limit"] == "5"


@pytest.mark.asyncio
async def test_success_returns_validated_records():
    body = {
        "meta": {"results": {"total": 1}},
        "results": [{
            "set_id": "s1", "effective_time": "20240101",
            "openfda": {"brand_name": ["Advil"]},
            "boxed_warning": ["Heart risk"],
        }],
    }
    payload = await _client(lambda r: httpx.Response(200, json=body)).fetch_label_candidates("advil")
    assert payload.total == 1
    assert payload.results[0].boxed_warning == ["Heart risk"]


@pytest.mark.asyncio
async def test_404_means_no_matches():
    payload = await _client(
        lambda r: httpx.Response(404, json={"error": {"code": "NOT_FOUND"}}),
    ).fetch_label_candidates("zzzz")
    assert payload.results == []


@pytest.mark.asyncio
async def test_404_logs_raw_query_as_drug_query(caplog):
    caplog.set_level(logging.INFO, logger="rxguard.infrastructure.openfda_client")
    await _client(lambda r: httpx.Response(404)).fetch_label_candidates("Advil PM")

    record = next(r for r in caplog.records if r.getMessage() == "openFDA returned no matches")
    assert record.drug_query == "Advil PM"
    assert not hasattr(record, "drug_key")


@pytest.mark.asyncio
async def test_server_error_raises_upstream_error():
    client = _client(lambda r: httpx.Response(500, text="boom " * 100))
    with pytest.raises(UpstreamError) as exc_info:
        await client.fetch_label_candidates("advil")
    err = exc_info.value
    assert err.status_code == 500
    assert len(err.body_excerpt) == 200
    assert err.http_status == 502
    assert err.code == "UPSTREAM_ERROR"


@pytest.mark.asyncio
async def test_transport_error_raises_upstream_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamError) as exc_info:
        await _client(handler).fetch_label_candidates("advil")
    assert exc_info.value.api_error_type == "connection_error"


@pytest.mark.asyncio
async def test_timeout_raises_upstream_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(UpstreamError) as exc_info:
        await _client(handler).fetch_label_candidates("advil")
    assert exc_info.value.api_error_type == "timeout"


@pytest.mark.asyncio
async def test_malformed_payload_raises_upstream_error():
    with pytest.raises(UpstreamError) as exc_info:
        await _client(lambda r: httpx.Response(200, text="<html>")).fetch_label_candidates("advil")
    assert exc_info.value.api_error_type == "malformed_payload"
