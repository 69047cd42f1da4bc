"""
역할 생성/수정에 공통으로 적용되는 검증 규칙.

리소스와 작업은 닫힌 열거형이며, 알 수 없는 값은 판정 시점이 아니라
저장 경계(Role Store)에서 ValidationError로 거부합니다.
"""
from typing import Any, List, Mapping, Optional, Union

from authz.domain import Action, Permission, Resource
from authz.services.exceptions import ValidationError

PermissionInput = Union[Permission, Mapping[str, Any]]


def normalize_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Role name is required.")
    return name.strip()


def normalize_description(description: Any) -> Optional[str]:
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("Role description must be a string.")
    return description.strip()


def parse_permissions(raw: Any) -> List[Permission]:
    """
    권한 목록을 검증하고 Permission 값의 리스트로 변환합니다.

    작업이 하나도 없는 항목은 저장하지 않으므로 결과에서 제외됩니다.
    같은 리소스가 두 번 이상 나오면 거부합니다.

    Raises:
        ValidationError: 형식이 잘못되었거나 알 수 없는 리소스/작업이 있을 때.
    """
    if raw is None or isinstance(raw, (str, bytes, Mapping)):
        raise ValidationError("Permissions must be a list of {resource, actions} entries.")

    parsed: List[Permission] = []
    seen = set()
    for entry in raw:
        permission = _parse_entry(entry)
        if permission.resource in seen:
            raise ValidationError(f"Duplicate permission entry for resource '{permission.resource.value}'.")
        seen.add(permission.resource)
        if permission.actions:
            parsed.append(permission)
    return parsed


def require_permissions(permissions: List[Permission]) -> List[Permission]:
    if not permissions:
        raise ValidationError("A role must grant at least one permission.")
    return permissions


def _parse_entry(entry: PermissionInput) -> Permission:
    if isinstance(entry, Permission):
        resource, actions = entry.resource, entry.actions
    elif isinstance(entry, Mapping):
        resource, actions = entry.get("resource"), entry.get("actions")
    else:
        raise ValidationError("Each permission must have a resource and a list of actions.")

    if actions is None or isinstance(actions, (str, bytes, Mapping)):
        raise ValidationError(f"Actions for resource '{resource}' must be a list.")

    return Permission(
        resource=_coerce(Resource, resource, "resource"),
        actions=frozenset(_coerce(Action, a, "action") for a in actions),
    )


def _coerce(enum_cls, value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        raise ValidationError(f"Unknown {label} '{value}'.")
