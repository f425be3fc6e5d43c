"""Baseline Fan-out — side-by-side answers from unguarded models.

Invariants:
    - Requested models run concurrently, each under its own wait_for timeout
    - One model failing never affects the other: failures become inline strings
    - No base URL configured → placeholder string per requested model, no IO
    - Output is display-only; the policy path never reads it
"""

import asyncio
import logging

from rxguard.config import Settings
from rxguard.core.domain_types import BaselineSelector
from rxguard.core.errors import BaselineModelError
from rxguard.core.format_messages import (
    BASELINE_SYSTEM_PROMPT, build_baseline_user_prompt,
)
from rxguard.core.repository_protocols import ChatModel
from rxguard.schemas.rxguard import BaselineAnswers, RxGuardRequest

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "[RXGUARD_LLM_BASE_URL not set]"


def build_baseline_messages(request: RxGuardRequest) -> list[dict]:
    profile = (
        request.profile.model_dump(mode="json", by_alias=True, exclude_none=True)
        if request.profile else None
    )
    user_prompt = build_baseline_user_prompt(
        request.question, request.primary_drug, request.other_meds, profile,
    )
    return [
        {"role": "system", "content": BASELINE_SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


async def _ask_one(
    client: ChatModel,
    label: str,
    model: str,
    messages: list[dict],
    settings: Settings,
) -> str:
    try:
        return await asyncio.wait_for(
            client.chat(
                model=model,
                messages=messages,
                temperature=settings.baseline_temperature,
                max_tokens=settings.baseline_max_tokens,
            ),
            timeout=settings.baseline_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.warning("Baseline model timed out", extra={"model": model})
        return f"[Model {label} error] timed out after {settings.baseline_timeout_seconds}s"
    except BaselineModelError as e:
        logger.warning(
            f"Baseline model failed: {e.message}",
            extra={"model": model, "error_code": e.code},
        )
        return f"[Model {label} error] {e.message}"
    except Exception as e:
        # Display-only collaborator: any failure is rendered, never raised
        logger.warning(
            f"Baseline model failed unexpectedly: {e}",
            extra={"model": model}, exc_info=True,
        )
        return f"[Model {label} error] {e}"


async def collect_baseline_answers(
    client: ChatModel | None,
    request: RxGuardRequest,
    settings: Settings,
) -> BaselineAnswers:
    selector = request.baseline_selector
    want_a = selector in (BaselineSelector.A, BaselineSelector.BOTH)
    want_b = selector in (BaselineSelector.B, BaselineSelector.BOTH)

    if client is None or not settings.rxguard_llm_base_url:
        return BaselineAnswers(
            model_a=NOT_CONFIGURED if want_a else None,
            model_b=NOT_CONFIGURED if want_b else None,
        )

    messages = build_baseline_messages(request)
    jobs = {}
    if want_a:
        jobs["A"] = _ask_one(client, "A", settings.rxguard_model_a, messages, settings)
    if want_b:
        jobs["B"] = _ask_one(client, "B", settings.rxguard_model_b, messages, settings)

    results = dict(zip(jobs, await asyncio.gather(*jobs.values())))
    return BaselineAnswers(model_a=results.get("A"), model_b=results.get("B"))
