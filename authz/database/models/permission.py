from sqlalchemy import Column, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base

class RolePermission(Base):
    """
    역할에 포함된 (리소스, 작업 목록) 항목입니다.
    역할 하나에 리소스당 최대 한 개의 항목만 존재하며, 작업 목록이 빈 항목은 저장하지 않습니다.
    """
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "resource", name="uq_role_permissions_role_resource"),
    )

    id = Column(Integer, primary_key=True, index=True)
    role_id = Column(String(36), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    resource = Column(String, nullable=False)
    actions = Column(JSON, nullable=False)

    role = relationship("Role", back_populates="permissions")
