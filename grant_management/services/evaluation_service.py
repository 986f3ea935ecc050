"""AuthZEN access evaluation over consented authorization details."""

import logging
from typing import Any

from grant_management.constants.enums import (
    AuthorizationDetailType,
    EvaluationSemantic,
    GrantStatus,
)
from grant_management.core.exceptions import AuthenticationException, ValidationException
from grant_management.dtos.caller_dtos import CallerContext
from grant_management.models.authorization_detail import AuthorizationDetailRecord
from grant_management.repositories.base import Store
from grant_management.schemas.evaluation import (
    EvaluationRequest,
    EvaluationResponse,
    EvaluationsRequest,
    EvaluationsResponse,
)
from grant_management.utils.resource_uri import (
    extract_resource_type,
    extract_server_location,
    is_uri,
)

logger = logging.getLogger(__name__)

NO_MATCH_REASON = "No consented authorization detail permits this request"


class EvaluationService:

    def __init__(self, store: Store):
        self._store = store

    async def evaluate(self, request: EvaluationRequest, caller: CallerContext) -> EvaluationResponse:
        missing = _missing_fields(request)
        if missing:
            raise ValidationException(
                "INVALID_EVALUATION_REQUEST",
                f"Missing required fields: {', '.join(missing)}",
                details=missing,
            )
        client_id = _resolve_client_id(caller, request.context)
        return await self._decide(request, client_id)

    async def evaluate_batch(
        self, batch: EvaluationsRequest, caller: CallerContext
    ) -> EvaluationsResponse:
        try:
            semantic = EvaluationSemantic(batch.options.evaluations_semantic)
        except ValueError:
            raise ValidationException(
                "INVALID_EVALUATIONS_SEMANTIC",
                f"Unsupported evaluations_semantic: {batch.options.evaluations_semantic}",
            ) from None

        defaults = EvaluationRequest(
            subject=batch.subject,
            action=batch.action,
            resource=batch.resource,
            context=batch.context,
        )
        if not batch.evaluations:
            return EvaluationsResponse(evaluations=[await self.evaluate(defaults, caller)])

        batch_client_id = caller.client_id or (batch.context or {}).get("client_id")
        results: list[EvaluationResponse] = []
        for item in batch.evaluations:
            merged = _with_defaults(item, defaults)
            missing = _missing_fields(merged)
            if missing:
                result = EvaluationResponse(
                    decision=False,
                    context={"error": f"Missing required fields: {', '.join(missing)}"},
                )
            else:
                result = await self._decide(
                    merged, _resolve_client_id(caller, merged.context, batch_client_id)
                )
            results.append(result)

            if semantic is EvaluationSemantic.PERMIT_ON_FIRST_PERMIT and result.decision:
                break
            if semantic is EvaluationSemantic.DENY_ON_FIRST_DENY and not result.decision:
                break
        return EvaluationsResponse(evaluations=results)

    async def _decide(self, request: EvaluationRequest, client_id: str) -> EvaluationResponse:
        subject_id = request.subject.id
        action = request.action.name
        resource_id = request.resource.id
        context = request.context or {}

        server_location = extract_server_location(resource_id)
        if context.get("server") and not is_uri(resource_id):
            server_location = context["server"]
        resource_type = request.resource.type or extract_resource_type(resource_id)

        type_codes = [resource_type]
        if resource_type != AuthorizationDetailType.MCP.value:
            type_codes.append(AuthorizationDetailType.MCP.value)
        candidates = await self._store.authorization_details.find_active_by_types(type_codes)

        for record in candidates:
            if not record.detail.matches_location(server_location):
                continue
            if not record.detail.permits(action, resource_id):
                continue
            if await self._is_owned_by(record, subject_id, client_id):
                logger.info(
                    "Evaluation permit: subject=%s action=%s resource=%s grant=%s",
                    subject_id,
                    action,
                    resource_id,
                    record.grant_id,
                )
                return EvaluationResponse(
                    decision=True,
                    context={
                        "grant_id": record.grant_id,
                        "message": f"Access granted by grant {record.grant_id}",
                    },
                    grant_id=record.grant_id,
                )

        logger.info(
            "Evaluation deny: subject=%s action=%s resource=%s candidates=%d",
            subject_id,
            action,
            resource_id,
            len(candidates),
        )
        return EvaluationResponse(decision=False, context={"reason": NO_MATCH_REASON})

    async def _is_owned_by(
        self, record: AuthorizationDetailRecord, subject_id: str, client_id: str
    ) -> bool:
        consent = await self._store.consents.find_by_id(record.consent_id)
        if consent is None or consent.subject != subject_id:
            return False
        request = await self._store.authorization_requests.find_by_id(consent.request_id)
        if request is None or request.client_id != client_id:
            return False
        grant = await self._store.grants.find_by_id(record.grant_id)
        return grant is not None and grant.status == GrantStatus.ACTIVE.value


def _missing_fields(request: EvaluationRequest) -> list[str]:
    missing = []
    if request.subject is None or not request.subject.id:
        missing.append("subject.id")
    if request.action is None or not request.action.name:
        missing.append("action.name")
    if request.resource is None or not request.resource.id:
        missing.append("resource.id")
    return missing


def _resolve_client_id(
    caller: CallerContext,
    context: dict[str, Any] | None,
    fallback: str | None = None,
) -> str:
    client_id = caller.client_id or (context or {}).get("client_id") or fallback
    if not client_id:
        logger.warning("Evaluation rejected: no authenticated client")
        raise AuthenticationException("UNAUTHENTICATED_CLIENT", "A client identity is required")
    return client_id


def _with_defaults(item: EvaluationRequest, defaults: EvaluationRequest) -> EvaluationRequest:
    context = {**(defaults.context or {}), **(item.context or {})}
    return EvaluationRequest(
        subject=item.subject or defaults.subject,
        action=item.action or defaults.action,
        resource=item.resource or defaults.resource,
        context=context or None,
    )
