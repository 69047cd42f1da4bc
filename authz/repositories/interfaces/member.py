from abc import ABC, abstractmethod
from typing import List, Optional
from authz.database import models

class IMemberRepository(ABC):
    @abstractmethod
    def create(self, member_model: models.Member) -> models.Member:
        """새로운 멤버를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, member_id: int) -> Optional[models.Member]:
        """고유 ID로 특정 멤버를 조회합니다."""
        pass

    @abstractmethod
    def list_by_company(self, company_id: int) -> List[models.Member]:
        """회사에 속한 모든 멤버의 목록을 조회합니다."""
        pass

    @abstractmethod
    def assign_role(self, member: models.Member, role: models.Role) -> models.Member:
        """멤버에게 역할을 할당합니다. 기존 할당은 대체됩니다."""
        pass
