from grant_management.models.authorization_detail import AuthorizationDetailBase
from grant_management.models.authorization_request import AuthorizationRequest
from grant_management.schemas.consent import (
    AuthorizationDetailView,
    ConsentEntryView,
    ConsentRequestView,
    ConsentView,
)
from grant_management.schemas.grant import GrantResponse


def build_detail_view(detail: AuthorizationDetailBase, index: int) -> AuthorizationDetailView:
    essentials = detail.essential_entries()
    return AuthorizationDetailView(
        index=index,
        type=detail.type_code,
        identifier=detail.key(index),
        title=detail.title,
        description=detail.description,
        category=detail.category,
        risk_level=detail.risk_level.value,
        locations=list(detail.locations),
        actions=list(detail.actions),
        entries=[
            ConsentEntryView(name=name, essential=name in essentials)
            for name in detail.claims()
        ],
    )


def build_consent_view(request: AuthorizationRequest, grant: GrantResponse) -> ConsentView:
    return ConsentView(
        request_id=request.id,
        consent_endpoint=f"/AuthorizationRequests/{request.id}/consent",
        grant=grant,
        request=ConsentRequestView(
            id=request.id,
            client_id=request.client_id,
            redirect_uri=request.redirect_uri,
            scope=request.scope,
            grant_management_action=request.grant_management_action,
            requested_actor=request.requested_actor,
            subject=request.subject,
            status=request.status,
            expires_in=request.expires_in,
            authorization_details=request.authorization_details,
        ),
        authorization_details=[
            build_detail_view(detail, index)
            for index, detail in enumerate(request.authorization_details)
        ],
    )
