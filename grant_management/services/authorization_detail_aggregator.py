"""Combine a grant's consents into its current scope and detail set."""

from collections.abc import Iterable

from grant_management.constants import OAuthErrorCode
from grant_management.constants.enums import GrantManagementAction
from grant_management.core.exceptions import OAuthException
from grant_management.models.authorization_detail import (
    AuthorizationDetailBase,
    AuthorizationDetailRecord,
)

RESETTING_ACTIONS = frozenset({GrantManagementAction.CREATE, GrantManagementAction.REPLACE})


def split_scope(scope: str | None) -> list[str]:
    return (scope or "").split()


def merge_scopes(*scopes: str | None) -> str:
    merged: list[str] = []
    for scope in scopes:
        for token in split_scope(scope):
            if token not in merged:
                merged.append(token)
    return " ".join(merged)


def resets_grant(action: GrantManagementAction | str) -> bool:
    return GrantManagementAction(action) in RESETTING_ACTIONS


def resolve_scope(current: str, granted: str, action: GrantManagementAction | str) -> str:
    if resets_grant(action):
        return merge_scopes(granted)
    return merge_scopes(current, granted)


def approve_details(
    requested: list[AuthorizationDetailBase],
    submitted: list[AuthorizationDetailBase] | None,
) -> list[AuthorizationDetailBase]:
    """Normalise what the subject approved and enforce essential entries.

    With nothing submitted, every requested entry counts as approved.
    """
    if not submitted:
        return [detail.approve_all() for detail in requested]

    approved = [detail.normalized() for detail in submitted]
    counterparts = match_requested(requested, approved)
    missing: list[str] = []
    for index, detail in enumerate(requested):
        essentials = detail.essential_entries()
        if not essentials:
            continue
        match = counterparts.get(index)
        granted = match.granted_entries() if match is not None else set()
        missing.extend(f"{detail.key(index)}:{name}" for name in sorted(essentials - granted))
    if missing:
        raise OAuthException(
            OAuthErrorCode.CONSENT_REQUIRED,
            f"Essential entries were not approved: {', '.join(missing)}",
        )
    return approved


def match_requested(
    requested: list[AuthorizationDetailBase],
    approved: list[AuthorizationDetailBase],
) -> dict[int, AuthorizationDetailBase]:
    """Pair each approved detail with the requested detail it narrows.

    Details are paired by identity (identifier, else type and target), never
    by position. Returns approved details keyed by their requested index.
    """
    unmatched = list(range(len(requested)))
    counterparts: dict[int, AuthorizationDetailBase] = {}
    for detail in approved:
        identity = detail.identity()
        index = next((i for i in unmatched if requested[i].identity() == identity), None)
        if index is None:
            raise OAuthException(
                OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS,
                f"Approved {detail.type_code} detail was not requested",
            )
        extra = detail.exceeds(requested[index])
        if extra:
            raise OAuthException(
                OAuthErrorCode.INVALID_AUTHORIZATION_DETAILS,
                f"Approval exceeds requested {requested[index].key(index)}: {', '.join(extra)}",
            )
        unmatched.remove(index)
        counterparts[index] = detail
    return counterparts


def aggregate_details(records: Iterable[AuthorizationDetailRecord]) -> list[AuthorizationDetailBase]:
    return [record.detail for record in records if record.active]
