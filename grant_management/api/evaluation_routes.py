from fastapi import APIRouter

from grant_management.constants.enums import EvaluationSemantic
from grant_management.core.dependencies import CallerContextDep, EvaluationServiceDep
from grant_management.core.settings import settings
from grant_management.schemas.evaluation import (
    EvaluationRequest,
    EvaluationResponse,
    EvaluationsRequest,
    EvaluationsResponse,
    PolicyDecisionPointMetadata,
)

router = APIRouter(tags=["Access Evaluation"])


@router.post(
    "/access/v1/evaluation",
    response_model=EvaluationResponse,
    response_model_exclude_none=True,
)
async def evaluate(
    payload: EvaluationRequest,
    evaluation_service: EvaluationServiceDep,
    caller: CallerContextDep,
) -> EvaluationResponse:
    return await evaluation_service.evaluate(payload, caller)


@router.post(
    "/access/v1/evaluations",
    response_model=EvaluationsResponse,
    response_model_exclude_none=True,
)
async def evaluations(
    payload: EvaluationsRequest,
    evaluation_service: EvaluationServiceDep,
    caller: CallerContextDep,
) -> EvaluationsResponse:
    return await evaluation_service.evaluate_batch(payload, caller)


@router.get("/.well-known/authzen-configuration", response_model=PolicyDecisionPointMetadata)
async def authzen_configuration() -> PolicyDecisionPointMetadata:
    issuer = settings.issuer_url.rstrip("/")
    return PolicyDecisionPointMetadata(
        policy_decision_point=issuer,
        access_evaluation_endpoint=f"{issuer}/access/v1/evaluation",
        access_evaluations_endpoint=f"{issuer}/access/v1/evaluations",
        capabilities=[semantic.value for semantic in EvaluationSemantic],
    )
