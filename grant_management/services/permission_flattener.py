"""Flatten authorization details into attribute rows and rebuild them.

Each detail becomes one row per array element, one row per claim map
entry and one row per scalar field, all sharing the resource identifier
``<grant_id>:<identifier>``. Rows for a grant are regenerated on every
consent, so they always mirror the grant's active details.
"""

import logging
from collections.abc import Iterable
from typing import Any

from grant_management.models.authorization_detail import (
    AUTHORIZATION_DETAIL_TYPES,
    AuthorizationDetailBase,
    AuthorizationDetailRecord,
    parse_authorization_detail,
)
from grant_management.models.permission import Permission

logger = logging.getLogger(__name__)

TYPE_ATTRIBUTE = "type"
CLAIM_PREFIXES: dict[str, str] = {"tools": "tool", "permissions": "permission"}

ARRAY_ATTRIBUTES: frozenset[str] = frozenset(
    field for detail_cls in AUTHORIZATION_DETAIL_TYPES.values() for field in detail_cls.array_fields
)
SCALAR_ATTRIBUTES: frozenset[str] = frozenset(
    field for detail_cls in AUTHORIZATION_DETAIL_TYPES.values() for field in detail_cls.scalar_fields
)


def build_resource_identifier(grant_id: str, identifier: str) -> str:
    return f"{grant_id}:{identifier}"


def split_resource_identifier(resource_identifier: str, grant_id: str | None = None) -> str:
    prefix = f"{grant_id}:" if grant_id else None
    if prefix and resource_identifier.startswith(prefix):
        return resource_identifier[len(prefix):]
    return resource_identifier.partition(":")[2] or resource_identifier


def flatten_authorization_detail(
    detail: AuthorizationDetailBase,
    grant_id: str,
    request_id: str | None = None,
    index: int = 0,
    identifier: str | None = None,
) -> list[Permission]:
    resource_identifier = build_resource_identifier(grant_id, identifier or detail.key(index))

    def row(attribute: str, value: str) -> Permission:
        return Permission(
            resource_identifier=resource_identifier,
            grant_id=grant_id,
            attribute=attribute,
            value=value,
            request_id=request_id,
        )

    rows = [row(TYPE_ATTRIBUTE, detail.type_code)]
    for field in detail.array_fields:
        rows.extend(row(field, value) for value in getattr(detail, field))

    if detail.claims_field is not None:
        prefix = CLAIM_PREFIXES[detail.claims_field]
        for name, claim in detail.normalized().claims().items():
            rows.append(row(f"{prefix}:{name}", "true" if claim else "false"))

    for field in detail.scalar_fields:
        value = getattr(detail, field)
        if value is not None:
            rows.append(row(field, str(value)))
    return rows


def flatten_authorization_details(
    details: Iterable[AuthorizationDetailBase],
    grant_id: str,
    request_id: str | None = None,
) -> list[Permission]:
    rows: list[Permission] = []
    for index, detail in enumerate(details):
        rows.extend(flatten_authorization_detail(detail, grant_id, request_id, index))
    return rows


def flatten_records(records: Iterable[AuthorizationDetailRecord]) -> list[Permission]:
    rows: list[Permission] = []
    for record in records:
        rows.extend(
            flatten_authorization_detail(
                record.detail,
                record.grant_id,
                record.request_id,
                identifier=record.identifier,
            )
        )
    return rows


def reconstruct_authorization_details(
    rows: Iterable[Permission],
) -> list[AuthorizationDetailBase]:
    grouped: dict[str, list[Permission]] = {}
    for permission in rows:
        grouped.setdefault(permission.resource_identifier, []).append(permission)

    details = []
    for resource_identifier, group in grouped.items():
        raw: dict[str, Any] = {
            "identifier": split_resource_identifier(resource_identifier, group[0].grant_id)
        }
        for permission in group:
            _apply_row(raw, permission)
        if TYPE_ATTRIBUTE not in raw:
            logger.warning("Skipping permission rows without a type: %s", resource_identifier)
            continue
        details.append(
            parse_authorization_detail({key: value for key, value in raw.items() if value})
        )
    return details


def _apply_row(raw: dict[str, Any], permission: Permission) -> None:
    attribute, value = permission.attribute, permission.value
    prefix, _, name = attribute.partition(":")
    if name:
        claims_field = next(
            (field for field, claim_prefix in CLAIM_PREFIXES.items() if claim_prefix == prefix),
            None,
        )
        if claims_field is not None:
            raw.setdefault(claims_field, {})[name] = value == "true"
            return
    if attribute in ARRAY_ATTRIBUTES:
        raw.setdefault(attribute, []).append(value)
    else:
        raw[attribute] = value
