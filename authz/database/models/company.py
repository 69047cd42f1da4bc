from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship
from ..database import Base

class Company(Base):
    """
    하나의 격리된 테넌트(회사)를 나타냅니다.
    모든 역할(Role)과 멤버(Member)는 이 Company 모델에 종속되며, 회사 간에 공유되지 않습니다.
    """
    __tablename__ = "companies"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())

    roles = relationship("Role", back_populates="company", cascade="all, delete-orphan")
    members = relationship("Member", back_populates="company", cascade="all, delete-orphan")
