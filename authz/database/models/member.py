from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship
from ..database import Base

class Member(Base):
    """
    회사에 소속되어 대시보드를 사용하는 사용자입니다.
    role 태그(owner/admin/agent)와 is_owner 플래그는 독립적이며,
    agent는 role_id가 가리키는 역할의 권한만 가집니다.
    역할이 삭제되면 role_id는 NULL이 됩니다.
    """
    __tablename__ = "members"
    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="agent")
    is_owner = Column(Boolean, nullable=False, default=False)
    role_id = Column(String(36), ForeignKey("roles.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now())

    company = relationship("Company", back_populates="members")
    assigned_role = relationship("Role")
