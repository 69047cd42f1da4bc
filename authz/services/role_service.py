from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from authz.core.logging import get_logger
from authz.database import models
from authz.domain import Action, Permission, Resource
from authz.repositories.interfaces import IRoleRepository
from authz.services import role_rules
from authz.services.exceptions import RoleNotFoundError, ValidationError

logger = get_logger(__name__)

_ACTION_VALUES = {a.value for a in Action}

# 새 회사에 처음 만들어지는 역할 목록. 첫 번째 역할이 기본 역할입니다.
DEFAULT_ROLES = [
    {
        "name": "Customer Support Agent",
        "description": "Handle customer conversations and manage contacts",
        "permissions": [
            {"resource": "conversations", "actions": ["read", "write"]},
            {"resource": "contacts", "actions": ["read", "write"]},
            {"resource": "templates", "actions": ["read"]},
            {"resource": "dashboard", "actions": ["read"]},
        ],
        "is_default": True,
    },
    {
        "name": "Sales Agent",
        "description": "Manage sales conversations and contacts",
        "permissions": [
            {"resource": "conversations", "actions": ["read", "write"]},
            {"resource": "contacts", "actions": ["read", "write"]},
            {"resource": "templates", "actions": ["read", "write"]},
            {"resource": "dashboard", "actions": ["read"]},
            {"resource": "analytics", "actions": ["read"]},
        ],
        "is_default": False,
    },
    {
        "name": "Marketing Manager",
        "description": "Full access to templates, automations, and analytics",
        "permissions": [
            {"resource": "conversations", "actions": ["read"]},
            {"resource": "contacts", "actions": ["read", "write"]},
            {"resource": "templates", "actions": ["read", "write", "delete"]},
            {"resource": "automations", "actions": ["read", "write", "delete"]},
            {"resource": "dashboard", "actions": ["read"]},
            {"resource": "analytics", "actions": ["read"]},
            {"resource": "integrations", "actions": ["read", "write"]},
        ],
        "is_default": False,
    },
    {
        "name": "Read Only",
        "description": "View-only access to most features",
        "permissions": [
            {"resource": "conversations", "actions": ["read"]},
            {"resource": "contacts", "actions": ["read"]},
            {"resource": "templates", "actions": ["read"]},
            {"resource": "dashboard", "actions": ["read"]},
            {"resource": "analytics", "actions": ["read"]},
        ],
        "is_default": False,
    },
]


class RoleService:
    """회사(테넌트) 범위의 역할 생성, 수정, 삭제, 조회를 담당하는 Role Store 서비스입니다."""

    def __init__(self, role_repo: IRoleRepository):
        """
        RoleService를 초기화합니다.

        Args:
            role_repo: 역할 데이터에 접근하기 위한 리포지토리.
        """
        self.role_repo = role_repo

    def create_role(
        self,
        company_id: int,
        name: str,
        permissions: Any,
        description: Optional[str] = None,
        is_default: bool = False,
    ) -> Dict[str, Any]:
        """
        새로운 역할을 생성합니다.

        is_default가 참이면 같은 회사의 기존 기본 역할은 같은 트랜잭션 안에서 해제됩니다.

        Returns:
            생성된 역할의 직렬화된 딕셔너리.

        Raises:
            ValidationError: 이름이 비었거나, 권한이 없거나, 같은 이름의 역할이 이미 있을 때.
        """
        name = role_rules.normalize_name(name)
        description = role_rules.normalize_description(description)
        parsed = role_rules.require_permissions(role_rules.parse_permissions(permissions))

        if self.role_repo.find_by_name(company_id, name):
            raise ValidationError(f"Role name '{name}' already exists.")

        new_role = models.Role(
            company_id=company_id,
            name=name,
            description=description,
            is_default=bool(is_default),
            permissions=[_to_row(p) for p in parsed],
        )
        try:
            created_role = self.role_repo.create(new_role, demote_default=bool(is_default))
        except IntegrityError as e:
            raise ValidationError(f"Role '{name}' conflicts with an existing role.") from e

        logger.info("role_created", company_id=company_id, role_id=created_role.id,
                    name=created_role.name, is_default=created_role.is_default)
        return serialize_role(created_role)

    def update_role(
        self,
        company_id: int,
        role_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        permissions: Any = None,
        is_default: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        역할을 수정합니다. None으로 전달된 필드는 변경하지 않습니다.

        생성과 같은 검증 규칙이 병합된 결과 상태에 적용됩니다.
        작업이 모두 제거된 리소스 항목은 역할에서 삭제됩니다.

        Raises:
            RoleNotFoundError: 회사 범위 안에서 역할을 찾을 수 없을 때.
            ValidationError: 병합 결과가 검증 규칙을 위반할 때.
        """
        role = self._get_role_model(company_id, role_id)

        new_name = role.name if name is None else role_rules.normalize_name(name)
        if new_name != role.name:
            existing = self.role_repo.find_by_name(company_id, new_name)
            if existing and existing.id != role.id:
                raise ValidationError(f"Role name '{new_name}' already exists.")

        if permissions is None:
            merged = role_rules.require_permissions(permissions_of(role))
        else:
            merged = role_rules.require_permissions(role_rules.parse_permissions(permissions))

        promote = bool(is_default) and not role.is_default

        role.name = new_name
        if description is not None:
            role.description = role_rules.normalize_description(description)
        if permissions is not None:
            _apply_permissions(role, merged)
        if is_default is not None:
            role.is_default = bool(is_default)

        try:
            updated_role = self.role_repo.update(role, demote_default=promote)
        except IntegrityError as e:
            raise ValidationError(f"Role '{new_name}' conflicts with an existing role.") from e

        logger.info("role_updated", company_id=company_id, role_id=updated_role.id,
                    is_default=updated_role.is_default, promoted_default=promote)
        return serialize_role(updated_role)

    def delete_role(self, company_id: int, role_id: str) -> None:
        """
        역할을 삭제합니다.

        이 역할이 할당된 멤버가 있어도 삭제를 막지 않으며, 해당 멤버들은 즉시 권한을 잃습니다.

        Raises:
            RoleNotFoundError: 회사 범위 안에서 역할을 찾을 수 없을 때.
        """
        role = self._get_role_model(company_id, role_id)
        stripped = self.role_repo.delete(role)
        if stripped:
            logger.warning("role_deleted_while_assigned", company_id=company_id,
                           role_id=role_id, members_stripped=stripped)
        else:
            logger.info("role_deleted", company_id=company_id, role_id=role_id)

    def get_role(self, company_id: int, role_id: str) -> Dict[str, Any]:
        """
        ID로 특정 역할을 조회합니다.

        Raises:
            RoleNotFoundError: 회사 범위 안에서 역할을 찾을 수 없을 때.
        """
        return serialize_role(self._get_role_model(company_id, role_id))

    def list_roles(self, company_id: int) -> List[Dict[str, Any]]:
        """회사의 모든 역할을 최근 생성 순으로 조회합니다."""
        return [serialize_role(r) for r in self.role_repo.list_by_company(company_id)]

    def get_role_permissions(self, company_id: int, role_id: str) -> List[Permission]:
        """Guard가 사용하는 역할 권한 조회. 역할이 없으면 RoleNotFoundError."""
        return permissions_of(self._get_role_model(company_id, role_id))

    def get_default_role(self, company_id: int) -> Optional[models.Role]:
        return self.role_repo.find_default(company_id)

    def seed_default_roles(self, company_id: int) -> List[Dict[str, Any]]:
        """
        역할이 하나도 없는 회사에 기본 역할 세트를 생성합니다.

        Returns:
            생성된 역할 목록. 이미 역할이 있으면 빈 리스트.
        """
        if self.role_repo.count_by_company(company_id) > 0:
            return []
        created = [self.create_role(company_id, **spec) for spec in DEFAULT_ROLES]
        logger.info("default_roles_seeded", company_id=company_id, count=len(created))
        return created

    def _get_role_model(self, company_id: int, role_id: str) -> models.Role:
        role = self.role_repo.find_by_id(company_id, role_id)
        if not role:
            raise RoleNotFoundError(f"Role with id '{role_id}' not found.")
        return role


def permissions_of(role: models.Role) -> List[Permission]:
    """저장된 역할 행을 Permission 값 리스트로 변환합니다. 알 수 없는 값은 버립니다."""
    result = []
    for row in role.permissions:
        try:
            resource = Resource(row.resource)
        except ValueError:
            continue
        actions = frozenset(Action(a) for a in row.actions or () if a in _ACTION_VALUES)
        if actions:
            result.append(Permission(resource=resource, actions=actions))
    return result


def serialize_role(role: models.Role) -> Dict[str, Any]:
    return {
        "id": role.id,
        "name": role.name,
        "description": role.description,
        "permissions": [p.to_dict() for p in permissions_of(role)],
        "isDefault": bool(role.is_default),
        "createdAt": role.created_at.isoformat() if role.created_at else None,
        "updatedAt": role.updated_at.isoformat() if role.updated_at else None,
    }


def _to_row(permission: Permission) -> models.RolePermission:
    return models.RolePermission(resource=permission.resource.value, actions=permission.to_dict()["actions"])


def _apply_permissions(role: models.Role, permissions: List[Permission]):
    # (role_id, resource) 유니크 제약 때문에 기존 행은 교체하지 않고 제자리에서 수정합니다.
    wanted = {p.resource.value: p for p in permissions}
    for row in list(role.permissions):
        if row.resource not in wanted:
            role.permissions.remove(row)
    existing = {row.resource: row for row in role.permissions}
    for resource, permission in wanted.items():
        actions = permission.to_dict()["actions"]
        if resource in existing:
            existing[resource].actions = actions
        else:
            role.permissions.append(models.RolePermission(resource=resource, actions=actions))
