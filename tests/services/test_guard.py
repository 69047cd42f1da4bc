# tests/services/test_guard.py
import threading
import time

import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from authz.domain import Action, Actor, Decision, Permission, Resource
from authz.services.exceptions import AccessDeniedError, ResolutionError, RoleNotFoundError
from authz.services.guard import Degrade, Fallback, GateMode, Guard, GuardState, Redirect
from authz.services.role_service import RoleService

CONTACTS_READ = [Permission(Resource.CONTACTS, frozenset({Action.READ}))]

AGENT = Actor(role="agent", is_owner=False, role_id="role-1", company_id=1, member_id=7)
ADMIN = Actor(role="admin", is_owner=False, company_id=1, member_id=2)
OWNER = Actor(role="agent", is_owner=True, company_id=1, member_id=1)

# ===================================================================
#  Fixture 설정
# ===================================================================

@pytest.fixture
def mock_role_service() -> MagicMock:
    """RoleService에 대한 모의 객체. 기본적으로 contacts:read 권한을 돌려줍니다."""
    service = MagicMock(spec=RoleService)
    service.get_role_permissions.return_value = CONTACTS_READ
    return service

@pytest.fixture
def navigator() -> MagicMock:
    return MagicMock()

@pytest.fixture
def guard(mock_role_service: MagicMock, navigator: MagicMock):
    """테스트에 사용될 Guard 인스턴스를 생성합니다."""
    guard = Guard(mock_role_service, timeout=1.0, navigator=navigator)
    yield guard
    guard.shutdown()

# ===================================================================
#  허용/거부 및 거부 처리 방식 테스트
# ===================================================================
class TestCheck:
    def test_allowed_runs_operation(self, guard: Guard, mock_role_service: MagicMock):
        """허용되면 보호된 작업이 실행되고 그 결과가 반환됩니다."""
        operation = MagicMock(return_value="rendered")

        outcome = guard.check(AGENT, Resource.CONTACTS, Action.READ, operation=operation)

        assert outcome.allowed
        assert outcome.state is GuardState.ALLOWED
        assert outcome.value == "rendered"
        operation.assert_called_once_with()
        mock_role_service.get_role_permissions.assert_called_once_with(1, "role-1")

    def test_denied_does_not_run_operation_and_degrades(self, guard: Guard):
        operation = MagicMock()

        outcome = guard.check(AGENT, "contacts", "write", operation=operation)

        assert outcome.decision is Decision.DENY
        assert outcome.state is GuardState.DENIED
        assert outcome.value is None
        assert outcome.redirect_to is None
        operation.assert_not_called()

    def test_denied_uses_fallback_value(self, guard: Guard, navigator: MagicMock):
        outcome = guard.check(AGENT, "automations", "read", denial=Fallback("Access Denied"))

        assert outcome.value == "Access Denied"
        navigator.assert_not_called()

    def test_denied_invokes_callable_fallback(self, guard: Guard):
        fallback = MagicMock(return_value="fallback-view")

        outcome = guard.check(AGENT, "automations", "read", denial=Fallback(fallback))

        assert outcome.value == "fallback-view"
        fallback.assert_called_once_with()

    def test_denied_redirects(self, guard: Guard, navigator: MagicMock):
        outcome = guard.check(AGENT, "contacts", "delete", denial=Redirect("/dashboard"))

        assert not outcome.allowed
        assert outcome.redirect_to == "/dashboard"
        navigator.assert_called_once_with("/dashboard")

    def test_explicit_degrade(self, guard: Guard):
        outcome = guard.check(AGENT, "contacts", "delete", denial=Degrade())
        assert outcome.value is None and outcome.redirect_to is None

    def test_owner_and_admin_skip_role_lookup(self, guard: Guard, mock_role_service: MagicMock):
        """owner/admin은 역할 조회 없이 허용됩니다."""
        assert guard.check(OWNER, "settings", "manage").allowed
        assert guard.check(ADMIN, "settings", "delete").allowed
        mock_role_service.get_role_permissions.assert_not_called()

# ===================================================================
#  상위 게이트(ownerOnly / adminOnly) 테스트
# ===================================================================
class TestGateModes:
    def test_owner_only(self, guard: Guard, mock_role_service: MagicMock):
        assert guard.check(OWNER, mode=GateMode.OWNER_ONLY).allowed
        assert not guard.check(ADMIN, mode=GateMode.OWNER_ONLY).allowed
        # owner 태그만 있고 플래그가 없으면 통과하지 못합니다.
        assert not guard.check(Actor(role="owner", is_owner=False), mode=GateMode.OWNER_ONLY).allowed
        mock_role_service.get_role_permissions.assert_not_called()

    def test_admin_only(self, guard: Guard):
        assert guard.check(OWNER, mode=GateMode.ADMIN_ONLY).allowed
        assert guard.check(ADMIN, mode=GateMode.ADMIN_ONLY).allowed
        assert not guard.check(AGENT, mode=GateMode.ADMIN_ONLY).allowed

    def test_gate_is_evaluated_before_permission_check(self, guard: Guard, mock_role_service: MagicMock):
        """게이트에서 거부되면 권한 조회 없이 거부됩니다."""
        outcome = guard.check(AGENT, "contacts", "read", mode=GateMode.ADMIN_ONLY, denial=Fallback("no"))

        assert outcome.value == "no"
        mock_role_service.get_role_permissions.assert_not_called()

# ===================================================================
#  조회 실패 시 거부(fail-closed) 테스트
# ===================================================================
class TestFailClosed:
    def test_deleted_role_resolves_to_deny(self, guard: Guard, mock_role_service: MagicMock):
        """할당된 역할이 삭제되었으면 이전 권한으로 허용되지 않고 거부됩니다."""
        mock_role_service.get_role_permissions.side_effect = RoleNotFoundError("gone")

        outcome = guard.check(AGENT, "contacts", "read")

        assert outcome.decision is Decision.DENY
        assert isinstance(outcome.error, ResolutionError)
        assert isinstance(outcome.error.__cause__, RoleNotFoundError)

    def test_store_failure_resolves_to_deny(self, guard: Guard, mock_role_service: MagicMock):
        mock_role_service.get_role_permissions.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        outcome = guard.check(AGENT, "contacts", "read")

        assert not outcome.allowed
        assert isinstance(outcome.error, ResolutionError)

    def test_actor_without_role_is_denied(self, guard: Guard, mock_role_service: MagicMock):
        actor = Actor(role="agent", role_id=None, company_id=1)

        outcome = guard.check(actor, "dashboard", "read")

        assert not outcome.allowed
        assert isinstance(outcome.error, ResolutionError)
        mock_role_service.get_role_permissions.assert_not_called()

    def test_timeout_resolves_to_deny(self, mock_role_service: MagicMock):
        """역할 조회가 제한 시간을 넘기면 거부됩니다."""
        release = threading.Event()
        mock_role_service.get_role_permissions.side_effect = lambda *args: release.wait(2) or CONTACTS_READ
        guard = Guard(mock_role_service, timeout=0.1)
        try:
            started = time.monotonic()
            outcome = guard.check(AGENT, "contacts", "read")

            assert not outcome.allowed
            assert isinstance(outcome.error, ResolutionError)
            assert time.monotonic() - started < 1.5
        finally:
            release.set()
            guard.shutdown()

    def test_cancelled_check_resolves_to_deny(self, guard: Guard, mock_role_service: MagicMock):
        cancel = threading.Event()
        cancel.set()
        release = threading.Event()
        mock_role_service.get_role_permissions.side_effect = lambda *args: release.wait(2) or CONTACTS_READ
        try:
            outcome = guard.check(AGENT, "contacts", "read", cancel_event=cancel)
            assert not outcome.allowed
            assert "cancelled" in str(outcome.error)
        finally:
            release.set()

# ===================================================================
#  API용 decide / require 테스트
# ===================================================================
class TestDecideAndRequire:
    def test_decide(self, guard: Guard):
        assert guard.decide(AGENT, "contacts", "read") is Decision.ALLOW
        assert guard.decide(AGENT, "contacts", "write") is Decision.DENY

    def test_require_raises_access_denied(self, guard: Guard):
        with pytest.raises(AccessDeniedError) as exc_info:
            guard.require(AGENT, "contacts", "write")
        # 어떤 권한이 빠졌는지 메시지에 드러내지 않습니다.
        assert "contacts" not in str(exc_info.value)

    def test_require_keeps_resolution_error_as_cause(self, guard: Guard, mock_role_service: MagicMock):
        mock_role_service.get_role_permissions.side_effect = RoleNotFoundError("gone")

        with pytest.raises(AccessDeniedError) as exc_info:
            guard.require(AGENT, "contacts", "read")
        assert isinstance(exc_info.value.__cause__, ResolutionError)

    def test_require_passes_silently_when_allowed(self, guard: Guard):
        assert guard.require(AGENT, "contacts", "read") is None

    @pytest.mark.parametrize("resource, action", [
        (None, "read"),
        ("contacts", None),
        (None, None),
        ("bogus", "read"),
        ("contacts", "bogus"),
    ])
    def test_decide_denies_missing_or_unknown_values(self, guard: Guard, resource, action):
        """리소스나 작업이 없거나 알 수 없는 값이면 거부됩니다."""
        assert guard.decide(AGENT, resource, action) is Decision.DENY

    def test_check_without_resource_or_gate_is_denied(self, guard: Guard, mock_role_service: MagicMock):
        """게이트 없이 리소스도 없으면 허용할 근거가 없으므로 거부됩니다."""
        operation = MagicMock()

        outcome = guard.check(AGENT, operation=operation)

        assert not outcome.allowed
        operation.assert_not_called()
        mock_role_service.get_role_permissions.assert_not_called()
