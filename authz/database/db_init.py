from authz.core.logging import configure_logging, get_logger
from authz.repositories.sqlalchemy.sqlalchemy_role_repository import SqlalchemyRoleRepository
from authz.services.role_service import RoleService
from .database import engine, SessionLocal, Base
from .models import Company, Member

logger = get_logger(__name__)

def initialize_db(session_factory=SessionLocal, bind=engine):
    """
    DB와 테이블을 생성하고, 데모 회사와 소유자 멤버, 기본 역할 세트를 삽입합니다.
    이미 회사가 존재하면 기본 데이터 삽입을 건너뜁니다.
    """
    logger.info("db_init_started")

    # 모든 테이블을 생성합니다. (이미 존재하면 생성하지 않음)
    Base.metadata.create_all(bind=bind)

    db = session_factory()
    try:
        if db.query(Company).first():
            logger.info("db_init_skipped", reason="seed data already present")
            return

        company = Company(name='default')
        db.add(company)
        db.commit()

        RoleService(SqlalchemyRoleRepository(db)).seed_default_roles(company.id)

        owner = Member(company_id=company.id, name='owner', role='owner', is_owner=True)
        db.add(owner)
        db.commit()
        logger.info("db_init_completed", company_id=company.id, owner_member_id=owner.id)

    except Exception:
        db.rollback()
        logger.exception("db_init_failed")
        raise
    finally:
        db.close()

if __name__ == '__main__':
    configure_logging()
    initialize_db()
