"""
접근 판정 함수 (Access Decision Point).

상태와 I/O가 없는 순수 함수만 포함합니다. 어떤 입력에도 예외를 던지지 않으며,
판정할 수 없는 값은 거부(DENY)로 귀결됩니다.
"""
from typing import Any, Iterable, List, Optional

from authz.domain import Action, Actor, ActorRole, Decision, Permission, Resource

_BYPASS_ROLES = (ActorRole.OWNER, ActorRole.ADMIN)


def decide(actor: Actor, role_permissions: Optional[Iterable[Permission]], resource: Any, action: Any) -> Decision:
    """
    행위자가 리소스에 대해 작업을 수행할 수 있는지 판정합니다.

    판정 순서:
        1. actor.is_owner가 참이면 허용.
        2. role 태그가 owner 또는 admin이면 허용.
        3. 해당 리소스의 권한 항목이 없으면 거부.
        4. 항목의 작업 집합에 action이 있으면 허용, 없으면 거부.

    manage는 read/write/delete를 포함하지 않습니다. 작업은 집합 포함 여부로만 판단합니다.
    """
    if actor.is_owner:
        return Decision.ALLOW
    if is_bypass_role(actor):
        return Decision.ALLOW

    resource = _as_member(Resource, resource)
    action = _as_member(Action, action)
    if resource is None or action is None:
        return Decision.DENY

    entry = next((p for p in (role_permissions or ()) if p.resource == resource), None)
    if entry is None:
        return Decision.DENY
    return Decision.ALLOW if action in entry.actions else Decision.DENY


def is_bypass_role(actor: Actor) -> bool:
    """owner/admin 태그처럼 권한 항목 없이 전부 허용되는 역할인지 확인합니다."""
    return _as_member(ActorRole, actor.role) in _BYPASS_ROLES


def is_owner_or_admin(actor: Optional[Actor]) -> bool:
    if actor is None:
        return False
    return bool(actor.is_owner) or is_bypass_role(actor)


def effective_permissions(actor: Actor, role_permissions: Optional[Iterable[Permission]]) -> List[Permission]:
    """
    행위자가 실제로 가지는 권한 목록을 반환합니다.

    owner와 admin은 모든 리소스에 대해 모든 작업을 가지며, 그 외에는 역할의 항목을 그대로 돌려줍니다.
    """
    if is_owner_or_admin(actor):
        return [Permission(resource=r, actions=frozenset(Action)) for r in Resource]
    return list(role_permissions or ())


def _as_member(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return None
