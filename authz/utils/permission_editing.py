from typing import Iterable, List, Union

from authz.domain import Action, Permission, Resource


def update_permissions(
    permissions: List[Permission],
    resource: Union[Resource, str],
    actions: Iterable[Union[Action, str]],
) -> List[Permission]:
    """
    한 리소스의 작업 집합을 교체한 새 권한 리스트를 반환합니다.

    작업 집합이 비면 해당 리소스 항목 자체를 제거합니다. 빈 작업 집합을 가진
    항목은 만들지 않습니다. 입력 리스트는 변경하지 않습니다.
    """
    resource = Resource(resource)
    new_actions = frozenset(Action(a) for a in actions)
    index = next((i for i, p in enumerate(permissions) if p.resource == resource), None)

    if not new_actions:
        return [p for p in permissions if p.resource != resource]

    updated = list(permissions)
    if index is None:
        updated.append(Permission(resource=resource, actions=new_actions))
    else:
        updated[index] = Permission(resource=resource, actions=new_actions)
    return updated


def toggle_action(
    permissions: List[Permission],
    resource: Union[Resource, str],
    action: Union[Action, str],
) -> List[Permission]:
    """권한 편집 화면의 체크박스 하나를 켜거나 끈 결과를 반환합니다."""
    resource, action = Resource(resource), Action(action)
    current = next((p.actions for p in permissions if p.resource == resource), frozenset())
    actions = current - {action} if action in current else current | {action}
    return update_permissions(permissions, resource, actions)
