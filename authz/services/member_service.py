from typing import Any, Dict, List, Optional

from authz.core.logging import get_logger
from authz.database import models
from authz.domain import Actor, ActorRole
from authz.repositories.interfaces import ICompanyRepository, IMemberRepository, IRoleRepository
from authz.services.exceptions import (
    CompanyNotFoundError, MemberNotFoundError, ResolutionError, RoleNotFoundError, ValidationError
)

logger = get_logger(__name__)


class MemberService:
    """회사 멤버의 생성, 역할 할당, 그리고 요청 행위자(Actor) 확인을 담당합니다."""

    def __init__(self, member_repo: IMemberRepository, role_repo: IRoleRepository, company_repo: ICompanyRepository):
        """
        MemberService를 초기화합니다.

        Args:
            member_repo: 멤버 데이터에 접근하기 위한 리포지토리.
            role_repo: 역할 데이터에 접근하기 위한 리포지토리 (역할 할당 검증용).
            company_repo: 회사 데이터에 접근하기 위한 리포지토리.
        """
        self.member_repo = member_repo
        self.role_repo = role_repo
        self.company_repo = company_repo

    def create_company(self, name: str) -> Dict[str, Any]:
        """
        새로운 회사(테넌트)를 생성합니다.

        Raises:
            ValidationError: 이름이 비었거나 동일한 이름의 회사가 이미 존재할 때.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Company name is required.")
        name = name.strip()
        if self.company_repo.find_by_name(name):
            raise ValidationError(f"Company with name '{name}' already exists.")
        company = self.company_repo.create(models.Company(name=name))
        return {"id": company.id, "name": company.name}

    def provision_member(
        self, company_id: int, name: str, role: str = ActorRole.AGENT.value, role_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        회사에 새 멤버를 추가합니다.

        role_id가 없으면 회사의 기본 역할이 자동으로 할당됩니다. (기본 역할이 없으면 할당 없음)

        Raises:
            CompanyNotFoundError: 회사를 찾을 수 없을 때.
            ValidationError: 이름이 비었거나 owner 태그로 생성하려 할 때, 알 수 없는 role 태그일 때.
            RoleNotFoundError: 지정한 role_id가 회사에 없을 때.
        """
        if not self.company_repo.find_by_id(company_id):
            raise CompanyNotFoundError(f"Company with id '{company_id}' not found.")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Member name is required.")
        try:
            role_tag = ActorRole(role)
        except ValueError:
            raise ValidationError(f"Unknown role '{role}'.")
        if role_tag is ActorRole.OWNER:
            raise ValidationError("Cannot provision a member with the owner role.")

        if role_id:
            assigned = self.role_repo.find_by_id(company_id, role_id)
            if not assigned:
                raise RoleNotFoundError(f"Role with id '{role_id}' not found.")
        else:
            assigned = self.role_repo.find_default(company_id)

        member = self.member_repo.create(models.Member(
            company_id=company_id,
            name=name.strip(),
            role=role_tag.value,
            is_owner=False,
            role_id=assigned.id if assigned else None,
        ))
        logger.info("member_provisioned", company_id=company_id, member_id=member.id, role_id=member.role_id)
        return _serialize_member(member)

    def list_members(self, company_id: int) -> List[Dict[str, Any]]:
        """회사에 속한 모든 멤버와 각자의 역할 할당을 조회합니다."""
        return [_serialize_member(m) for m in self.member_repo.list_by_company(company_id)]

    def assign_role(self, company_id: int, member_id: int, role_id: str) -> Dict[str, Any]:
        """
        멤버에게 회사의 역할을 할당합니다.

        Raises:
            MemberNotFoundError: 회사 범위 안에서 멤버를 찾을 수 없을 때.
            RoleNotFoundError: 회사 범위 안에서 역할을 찾을 수 없을 때.
        """
        member = self.member_repo.find_by_id(member_id)
        if not member or member.company_id != company_id:
            raise MemberNotFoundError(f"Member with id '{member_id}' not found.")

        role = self.role_repo.find_by_id(company_id, role_id)
        if not role:
            raise RoleNotFoundError(f"Role with id '{role_id}' not found.")

        member = self.member_repo.assign_role(member, role)
        logger.info("role_assigned", company_id=company_id, member_id=member_id, role_id=role_id)
        return _serialize_member(member)

    def resolve_actor(self, member_id: Any) -> Actor:
        """
        멤버 ID로 요청 행위자를 확인합니다.

        Raises:
            ResolutionError: 멤버를 찾을 수 없거나 조회에 실패했을 때.
        """
        try:
            member = self.member_repo.find_by_id(int(member_id))
        except (TypeError, ValueError) as e:
            raise ResolutionError(f"Invalid member id '{member_id}'.") from e
        if not member:
            raise ResolutionError(f"Member '{member_id}' could not be resolved.")
        return Actor(
            role=member.role,
            is_owner=bool(member.is_owner),
            role_id=member.role_id,
            company_id=member.company_id,
            member_id=member.id,
        )


def _serialize_member(member: models.Member) -> Dict[str, Any]:
    return {
        "id": member.id,
        "companyId": member.company_id,
        "name": member.name,
        "role": member.role,
        "isOwner": bool(member.is_owner),
        "roleId": member.role_id,
    }
