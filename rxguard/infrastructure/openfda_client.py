"""openFDA Label Client — bounded drug/label candidate search over httpx.

Invariants:
    - limit always clamped to [1, 25]
    - HTTP 404 means "no matches": empty payload, never an error
    - Any other non-2xx → UpstreamError with status and first 200 chars of body
    - Transport failures, timeouts and schema-invalid payloads → UpstreamError
    - No retry: one failed attempt is fatal (RxGuard never guesses past upstream failure)
    - Payload validated by OpenFdaSearchPayload before any field is read

Design Decisions:
    - One AsyncClient per process (created in lifespan, closed on shutdown):
      connection pooling without module-level state
    - api_key sent as query param only when configured (openFDA is public)
"""

import logging

import httpx
from pydantic import ValidationError

from rxguard.core.errors import ErrorContext, UpstreamError
from rxguard.core.label_selection import build_search_expr, clamp_limit
from rxguard.schemas.openfda import OpenFdaSearchPayload

logger = logging.getLogger(__name__)

OPENFDA_LABEL_URL = "https://api.fda.gov/drug/label.json"
_BODY_EXCERPT_CHARS = 200


class OpenFdaClient:
    """LabelSource implementation for the public openFDA drug/label endpoint."""

    def __init__(
        self,
        base_url: str = OPENFDA_LABEL_URL,
        api_key: str | None = None,
        timeout_seconds: float = 20.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_params(self, drug_name: str, limit: int | None) -> dict[str, str]:
        params = {
            "search": build_search_expr(drug_name),
            "limit": str(clamp_limit(limit)),
        }
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    async def fetch_label_candidates(
        self, drug_name: str, limit: int | None = None,
    ) -> OpenFdaSearchPayload:
        ctx = ErrorContext(drug_query=drug_name)
        params = self.build_params(drug_name, limit)
        try:
            res = await self._client.get(
                self.base_url, params=params,
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise UpstreamError(f"request timed out: {e}", "timeout", context=ctx)
        except httpx.HTTPError as e:
            raise UpstreamError(f"transport failure: {e}", "connection_error", context=ctx)

        if res.status_code == 404:
            logger.info(
                "openFDA returned no matches",
                extra={"status_code": 404, "drug_query": drug_name},
            )
            return OpenFdaSearchPayload()
        if not res.is_success:
            excerpt = res.text[:_BODY_EXCERPT_CHARS]
            raise UpstreamError(
                f"HTTP {res.status_code}: {excerpt}", "http_status",
                status_code=res.status_code, body_excerpt=excerpt, context=ctx,
            )

        try:
            payload = OpenFdaSearchPayload.model_validate(res.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamError(
                f"malformed payload: {e}", "malformed_payload",
                status_code=res.status_code, context=ctx,
            )
        logger.info(
            "openFDA candidates fetched",
            extra={"candidates": len(payload.results), "status_code": res.status_code},
        )
        return payload
