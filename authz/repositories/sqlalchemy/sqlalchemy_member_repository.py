from typing import List, Optional
from sqlalchemy.orm import Session
from authz.database import models
from authz.repositories.interfaces import IMemberRepository

class SqlalchemyMemberRepository(IMemberRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, member_model: models.Member) -> models.Member:
        self.db.add(member_model)
        self.db.commit()
        self.db.refresh(member_model)
        return member_model

    def find_by_id(self, member_id: int) -> Optional[models.Member]:
        return self.db.query(models.Member).filter(models.Member.id == member_id).first()

    def list_by_company(self, company_id: int) -> List[models.Member]:
        return self.db.query(models.Member).filter(
            models.Member.company_id == company_id
        ).order_by(models.Member.created_at.desc()).all()

    def assign_role(self, member: models.Member, role: models.Role) -> models.Member:
        member.role_id = role.id
        self.db.commit()
        self.db.refresh(member)
        return member
