from abc import ABC, abstractmethod
from typing import Optional
from authz.database import models

class ICompanyRepository(ABC):
    @abstractmethod
    def create(self, company_model: models.Company) -> models.Company:
        """새로운 회사를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, company_id: int) -> Optional[models.Company]:
        """고유 ID로 특정 회사를 조회합니다."""
        pass

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[models.Company]:
        """이름으로 특정 회사를 조회합니다."""
        pass
