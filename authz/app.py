# authz/app.py
from concurrent.futures import ThreadPoolExecutor
from wsgiref.simple_server import make_server
import json
import re

from authz.core.config import get_settings
from authz.core.logging import configure_logging, get_logger
from authz.database.database import SessionLocal
from authz.repositories.sqlalchemy.sqlalchemy_company_repository import SqlalchemyCompanyRepository
from authz.repositories.sqlalchemy.sqlalchemy_member_repository import SqlalchemyMemberRepository
from authz.repositories.sqlalchemy.sqlalchemy_role_repository import SqlalchemyRoleRepository
from authz.services import access_decision
from authz.services.guard import Guard, GateMode
from authz.services.member_service import MemberService
from authz.services.role_service import RoleService
from authz.services.exceptions import (
    AccessDeniedError, AuthenticationError, NotFoundError, ResolutionError, ValidationError
)

logger = get_logger(__name__)

# --------------------------------------------------------------------------
## 요청 처리 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        data = json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise ValidationError("Invalid or missing JSON body.")
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object.")
    return data

def get_current_actor(environ):
    """X-Member-Id 헤더로 요청 행위자를 확인합니다. 세션/토큰 검증은 이 서비스의 범위 밖입니다."""
    member_id = environ.get('HTTP_X_MEMBER_ID')
    if not member_id:
        raise AuthenticationError("Missing 'X-Member-Id' header.")
    return environ['services']['members'].resolve_actor(member_id)

def require_admin(environ):
    actor = get_current_actor(environ)
    environ['services']['guard'].require(actor, mode=GateMode.ADMIN_ONLY)
    return actor

def success(status, data):
    return status, json.dumps({"success": True, "data": data})

def handle_exception(e):
    error_map = {
        AuthenticationError: "401 Unauthorized",
        AccessDeniedError: "403 Forbidden",
        ResolutionError: "403 Forbidden",
        NotFoundError: "404 Not Found",
        ValidationError: "400 Bad Request",
    }
    status = next((s for cls, s in error_map.items() if isinstance(e, cls)), None)
    if status is None:
        logger.error("unhandled_error", error=str(e), exc_info=e)
        return "500 Internal Server Error", json.dumps(
            {"success": False, "error": {"kind": "InternalError", "message": "Internal server error."}}
        )
    if isinstance(e, ResolutionError):
        # 거부 응답에서 조회 실패 사유는 노출하지 않습니다.
        e = AccessDeniedError()
    return status, json.dumps({"success": False, "error": {"kind": e.kind, "message": str(e)}})

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

class ScopedPermissionLookup:
    """
    Guard의 역할 조회용 Role Store.

    조회는 작업 스레드에서 실행되고 시간 초과 후에도 끝까지 돌 수 있으므로,
    요청 세션을 공유하지 않고 조회마다 자체 세션을 열고 닫습니다.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_role_permissions(self, company_id, role_id):
        db_session = self.session_factory()
        try:
            return RoleService(SqlalchemyRoleRepository(db_session)).get_role_permissions(company_id, role_id)
        finally:
            db_session.close()

def make_application(session_factory=SessionLocal, guard_timeout=None):
    """세션 팩토리를 주입받아 WSGI 애플리케이션을 만듭니다. Guard 스레드 풀은 애플리케이션마다 하나입니다."""
    settings = get_settings()
    permission_lookup = ScopedPermissionLookup(session_factory)
    guard_executor = ThreadPoolExecutor(
        max_workers=settings.guard_max_workers, thread_name_prefix="authz-guard"
    )

    def application(environ, start_response):
        db_session = session_factory()
        try:
            # 1. 의존성 생성 (Repositories -> Services)
            role_repo = SqlalchemyRoleRepository(db_session)
            member_repo = SqlalchemyMemberRepository(db_session)
            company_repo = SqlalchemyCompanyRepository(db_session)

            role_service = RoleService(role_repo)
            member_service = MemberService(member_repo, role_repo, company_repo)
            guard = Guard(permission_lookup, timeout=guard_timeout, executor=guard_executor)

            # 2. 생성된 서비스 객체들을 environ을 통해 핸들러에 전달
            environ['services'] = {
                'roles': role_service,
                'members': member_service,
                'guard': guard,
            }

            # 3. 라우팅 및 핸들러 실행
            path = environ.get("PATH_INFO", "")
            method = environ.get("REQUEST_METHOD", "")

            routes = [
                ('GET', r'^/v1/roles$', list_roles_handler),
                ('POST', r'^/v1/roles$', create_role_handler),
                ('GET', r'^/v1/roles/([a-zA-Z0-9-]+)$', get_role_handler),
                ('PUT', r'^/v1/roles/([a-zA-Z0-9-]+)$', update_role_handler),
                ('DELETE', r'^/v1/roles/([a-zA-Z0-9-]+)$', delete_role_handler),
                ('GET', r'^/v1/permissions$', permissions_handler),
                ('POST', r'^/v1/decisions$', decide_handler),
                ('GET', r'^/v1/members$', list_members_handler),
                ('PUT', r'^/v1/members/([0-9]+)/role/([a-zA-Z0-9-]+)$', assign_role_handler),
            ]

            handler, path_args = None, []
            for route_method, pattern, route_handler in routes:
                if method == route_method and (match := re.match(pattern, path)):
                    handler, path_args = route_handler, match.groups()
                    break

            if handler:
                status, response_body = handler(environ, *path_args)
            else:
                status, response_body = '404 Not Found', json.dumps(
                    {"success": False, "error": {"kind": "NotFoundError", "message": "Not Found"}}
                )

        except Exception as e:
            status, response_body = handle_exception(e)
        finally:
            db_session.close()

        start_response(status, [("Content-Type", "application/json")])
        return [response_body.encode("utf-8")]

    return application

application = make_application()

# --------------------------------------------------------------------------
## 핸들러 함수
# --------------------------------------------------------------------------

def list_roles_handler(environ, *args):
    actor = require_admin(environ)
    roles = environ['services']['roles'].list_roles(actor.company_id)
    return success('200 OK', {"roles": roles})

def create_role_handler(environ, *args):
    actor = require_admin(environ)
    data = get_request_data(environ)
    role = environ['services']['roles'].create_role(
        actor.company_id,
        name=data.get('name'),
        permissions=data.get('permissions'),
        description=data.get('description'),
        is_default=bool(data.get('isDefault', False)),
    )
    return success('201 Created', {"role": role})

def get_role_handler(environ, role_id):
    actor = require_admin(environ)
    role = environ['services']['roles'].get_role(actor.company_id, role_id)
    return success('200 OK', {"role": role})

def update_role_handler(environ, role_id):
    actor = require_admin(environ)
    data = get_request_data(environ)
    role = environ['services']['roles'].update_role(
        actor.company_id,
        role_id,
        name=data.get('name'),
        description=data.get('description'),
        permissions=data.get('permissions'),
        is_default=data.get('isDefault'),
    )
    return success('200 OK', {"role": role})

def delete_role_handler(environ, role_id):
    actor = require_admin(environ)
    environ['services']['roles'].delete_role(actor.company_id, role_id)
    return success('200 OK', {"message": "Role deleted successfully"})

def permissions_handler(environ, *args):
    actor = get_current_actor(environ)
    role_permissions = []
    if not access_decision.is_owner_or_admin(actor) and actor.role_id:
        role_permissions = environ['services']['roles'].get_role_permissions(actor.company_id, actor.role_id)
    permissions = access_decision.effective_permissions(actor, role_permissions)
    return success('200 OK', {
        "role": getattr(actor.role, "value", actor.role),
        "isOwner": actor.is_owner,
        "permissions": [p.to_dict() for p in permissions],
    })

def decide_handler(environ, *args):
    actor = get_current_actor(environ)
    data = get_request_data(environ)
    decision = environ['services']['guard'].decide(actor, data.get('resource'), data.get('action'))
    if not decision.allowed:
        raise AccessDeniedError()
    return success('200 OK', {"decision": decision.value})

def list_members_handler(environ, *args):
    actor = require_admin(environ)
    members = environ['services']['members'].list_members(actor.company_id)
    return success('200 OK', {"members": members})

def assign_role_handler(environ, member_id, role_id):
    actor = require_admin(environ)
    member = environ['services']['members'].assign_role(actor.company_id, int(member_id), role_id)
    return success('200 OK', {"member": member})

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings)
    try:
        with make_server(settings.host, settings.port, application) as httpd:
            logger.info("server_started", port=settings.port)
            httpd.serve_forever()
    except OSError as e:
        logger.error("server_start_failed", error=str(e))
