from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Union

from .enums import Action, ActorRole, Resource


@dataclass(frozen=True)
class Permission:
    """역할이 부여하는 (리소스, 작업 집합) 쌍. 역할에 포함되며 단독으로 조회되지 않습니다."""
    resource: Resource
    actions: FrozenSet[Action] = field(default_factory=frozenset)

    def to_dict(self) -> Dict[str, Any]:
        # 직렬화 시 작업 순서는 열거형 선언 순서를 따릅니다.
        return {
            "resource": self.resource.value,
            "actions": [a.value for a in Action if a in self.actions],
        }


@dataclass(frozen=True)
class Actor:
    """
    작업을 수행하는 주체.

    신원 확인 협력자가 요청마다 만들어 전달합니다. role 태그와 is_owner 플래그는
    서로 독립적이며, is_owner가 참이면 role 값과 관계없이 전체 권한을 가집니다.
    """
    role: Union[ActorRole, str] = ActorRole.AGENT
    is_owner: bool = False
    role_id: Optional[str] = None
    company_id: Optional[int] = None
    member_id: Optional[int] = None
