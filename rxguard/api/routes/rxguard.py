"""RxGuard Route — POST /api/v1/rxguard/answer.

Invariants:
    - Body validated as RxGuardRequest (camelCase or snake_case keys)
    - Response is camelCase with null fields omitted
    - Service comes from app.state via a dependency (overridable in tests)
"""

from fastapi import APIRouter, Depends, Request

from rxguard.schemas.rxguard import RxGuardRequest, RxGuardResponse
from rxguard.services.rxguard_answer import RxGuardAnswerService

router = APIRouter(prefix="/api/v1/rxguard", tags=["rxguard"])


def get_answer_service(request: Request) -> RxGuardAnswerService:
    return request.app.state.answer_service


@router.post(
    "/answer",
    response_model=RxGuardResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def answer(
    body: RxGuardRequest,
    service: RxGuardAnswerService = Depends(get_answer_service),
):
    """Policy-gated, evidence-linked answer for one medication question."""
    return await service.answer(body)
