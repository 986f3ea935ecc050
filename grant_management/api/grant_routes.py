from typing import Annotated

from fastapi import APIRouter, Query, Response

from grant_management.core.dependencies import GrantServiceDep
from grant_management.dtos.grant_dtos import GrantFilterDTO
from grant_management.models.authorization_detail import AuthorizationDetail
from grant_management.schemas.grant import (
    GrantListResponse,
    GrantResponse,
    PermissionListResponse,
    PermissionResponse,
)

router = APIRouter(prefix="/grants", tags=["Grant Management"])


@router.get("", response_model=GrantListResponse, summary="List grants")
async def list_grants(
    grant_service: GrantServiceDep,
    subject: Annotated[str | None, Query()] = None,
    client_id: Annotated[str | None, Query()] = None,
    status: Annotated[str | None, Query()] = None,
) -> GrantListResponse:
    grants = await grant_service.list_grants(
        GrantFilterDTO(subject=subject, client_id=client_id, status=status)
    )
    return GrantListResponse(grants=grants, total=len(grants))


@router.get("/{grant_id}", response_model=GrantResponse, summary="Read a grant")
async def get_grant(grant_id: str, grant_service: GrantServiceDep) -> GrantResponse:
    return await grant_service.get_grant(grant_id)


@router.delete("/{grant_id}", status_code=204, summary="Revoke a grant")
async def revoke_grant(grant_id: str, grant_service: GrantServiceDep) -> Response:
    await grant_service.revoke_grant(grant_id)
    return Response(status_code=204)


@router.get(
    "/{grant_id}/permissions",
    response_model=PermissionListResponse,
    summary="Flattened permission rows of a grant",
)
async def get_permissions(
    grant_id: str,
    grant_service: GrantServiceDep,
    attribute: Annotated[str | None, Query()] = None,
) -> PermissionListResponse:
    rows = await grant_service.get_permissions(grant_id, attribute)
    return PermissionListResponse(
        grant_id=grant_id,
        permissions=[PermissionResponse.model_validate(row.model_dump()) for row in rows],
    )


@router.get(
    "/{grant_id}/permissions/details",
    response_model=list[AuthorizationDetail],
    summary="Authorization details rebuilt from permission rows",
)
async def get_permission_details(grant_id: str, grant_service: GrantServiceDep):
    return await grant_service.get_permission_details(grant_id)
