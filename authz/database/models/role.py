import uuid

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint, func, text,
)
from sqlalchemy.orm import relationship
from ..database import Base

class Role(Base):
    """
    회사 안에서 멤버에게 부여할 수 있는 권한 묶음입니다.
    (예: 'Customer Support Agent', 'Read Only').

    - 이름은 회사 안에서 유일합니다.
    - 회사마다 기본 역할(is_default)은 최대 하나이며, 부분 유니크 인덱스로 보장합니다.
    - id는 생성 시 할당되는 불투명한 UUID 문자열이며 변경되지 않습니다.
    """
    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_roles_company_name"),
        Index(
            "uq_roles_company_default",
            "company_id",
            unique=True,
            sqlite_where=text("is_default = 1"),
            postgresql_where=text("is_default"),
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    company = relationship("Company", back_populates="roles")
    permissions = relationship(
        "RolePermission",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="RolePermission.id",
    )
