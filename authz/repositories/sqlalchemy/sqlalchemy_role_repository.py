from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from authz.database import models
from authz.repositories.interfaces import IRoleRepository

class SqlalchemyRoleRepository(IRoleRepository):
    def __init__(self, db_session: Session):
        self.db = db_session

    def create(self, role_model: models.Role, demote_default: bool = False) -> models.Role:
        try:
            if demote_default:
                self._demote_default(role_model.company_id, exclude_id=None)
            self.db.add(role_model)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(role_model)
        return role_model

    def update(self, role_model: models.Role, demote_default: bool = False) -> models.Role:
        try:
            if demote_default:
                self._demote_default(role_model.company_id, exclude_id=role_model.id)
            # 권한 행만 바뀌면 roles 행이 dirty가 아니어서 onupdate가 동작하지 않습니다.
            role_model.updated_at = func.now()
            self.db.add(role_model)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(role_model)
        return role_model

    def find_by_id(self, company_id: int, role_id: str) -> Optional[models.Role]:
        return self.db.query(models.Role).filter(
            models.Role.company_id == company_id,
            models.Role.id == role_id
        ).first()

    def find_by_name(self, company_id: int, name: str) -> Optional[models.Role]:
        return self.db.query(models.Role).filter(
            models.Role.company_id == company_id,
            models.Role.name == name
        ).first()

    def find_default(self, company_id: int) -> Optional[models.Role]:
        return self.db.query(models.Role).filter(
            models.Role.company_id == company_id,
            models.Role.is_default.is_(True)
        ).first()

    def list_by_company(self, company_id: int) -> List[models.Role]:
        return self.db.query(models.Role).filter(
            models.Role.company_id == company_id
        ).order_by(models.Role.created_at.desc(), models.Role.name.asc()).all()

    def count_by_company(self, company_id: int) -> int:
        return self.db.query(models.Role).filter(models.Role.company_id == company_id).count()

    def delete(self, role: models.Role) -> int:
        try:
            # 멤버 할당 해제와 역할 삭제는 하나의 트랜잭션으로 처리
            stripped = self.db.query(models.Member).filter(
                models.Member.role_id == role.id
            ).update({models.Member.role_id: None}, synchronize_session=False)
            self.db.delete(role)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return stripped

    def _demote_default(self, company_id: int, exclude_id: Optional[str]):
        query = self.db.query(models.Role).filter(
            models.Role.company_id == company_id,
            models.Role.is_default.is_(True)
        )
        if exclude_id is not None:
            query = query.filter(models.Role.id != exclude_id)
        query.update({models.Role.is_default: False}, synchronize_session=False)
