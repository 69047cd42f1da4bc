from typing import Optional
from sqlalchemy.orm import Session
from authz.database import models
from authz.repositories.interfaces import ICompanyRepository

class SqlalchemyCompanyRepository(ICompanyRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, company_model: models.Company) -> models.Company:
        self.db.add(company_model)
        self.db.commit()
        self.db.refresh(company_model)
        return company_model

    def find_by_id(self, company_id: int) -> Optional[models.Company]:
        return self.db.query(models.Company).filter(models.Company.id == company_id).first()

    def find_by_name(self, name: str) -> Optional[models.Company]:
        return self.db.query(models.Company).filter(models.Company.name == name).first()
