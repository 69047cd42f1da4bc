# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authz.database.database import Base
from authz.database import models  # noqa: F401  (테이블 등록)

# ===================================================================
#  인메모리 SQLite Fixture
# ===================================================================

@pytest.fixture
def engine():
    """테스트마다 새로운 인메모리 SQLite 엔진을 생성합니다. (모든 스레드가 같은 연결을 공유)"""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)

@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def company(db_session) -> models.Company:
    company = models.Company(name="acme")
    db_session.add(company)
    db_session.commit()
    return company
