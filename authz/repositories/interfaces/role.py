from abc import ABC, abstractmethod
from typing import List, Optional
from authz.database import models

class IRoleRepository(ABC):
    @abstractmethod
    def create(self, role_model: models.Role, demote_default: bool = False) -> models.Role:
        """
        새로운 역할을 생성합니다.

        demote_default가 참이면 같은 회사의 기존 기본 역할을 같은 트랜잭션 안에서 해제합니다.
        """
        pass

    @abstractmethod
    def update(self, role_model: models.Role, demote_default: bool = False) -> models.Role:
        """변경된 역할을 저장합니다. demote_default는 create와 같은 의미입니다."""
        pass

    @abstractmethod
    def find_by_id(self, company_id: int, role_id: str) -> Optional[models.Role]:
        """회사 범위 안에서 ID로 특정 역할을 조회합니다."""
        pass

    @abstractmethod
    def find_by_name(self, company_id: int, name: str) -> Optional[models.Role]:
        """회사 범위 안에서 이름으로 특정 역할을 조회합니다."""
        pass

    @abstractmethod
    def find_default(self, company_id: int) -> Optional[models.Role]:
        """회사의 기본 역할을 조회합니다. 없으면 None."""
        pass

    @abstractmethod
    def list_by_company(self, company_id: int) -> List[models.Role]:
        """회사의 모든 역할을 최근 생성 순으로 조회합니다."""
        pass

    @abstractmethod
    def count_by_company(self, company_id: int) -> int:
        """회사에 속한 역할의 개수를 조회합니다."""
        pass

    @abstractmethod
    def delete(self, role: models.Role) -> int:
        """
        역할을 삭제하고, 이 역할이 할당되어 있던 멤버들의 할당을 해제합니다.

        Returns:
            할당이 해제된 멤버 수.
        """
        pass
