"""
Guard: 보호된 작업(UI 영역 렌더링, 백엔드 요청 처리) 앞에서 접근을 강제하는 단일 지점.

호출 한 번의 상태 전이:
    PENDING -> RESOLVING_ACTOR -> EVALUATING -> ALLOWED | DENIED

재시도 상태는 없습니다. 역할 변경 후 다시 판정하려면 Guard를 다시 호출해야 합니다.
행위자 데이터 조회가 실패하면(조회 오류, 시간 초과, 취소) 항상 거부합니다.
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from authz.core.config import get_settings
from authz.core.logging import get_logger
from authz.domain import Action, Actor, ActorRole, Decision, Permission, Resource
from authz.services import access_decision
from authz.services.exceptions import AccessDeniedError, NotFoundError, ResolutionError

logger = get_logger(__name__)

_POLL_INTERVAL = 0.05


class GuardState(str, Enum):
    PENDING = "pending"
    RESOLVING_ACTOR = "resolving_actor"
    EVALUATING = "evaluating"
    ALLOWED = "allowed"
    DENIED = "denied"


class GateMode(str, Enum):
    """리소스/작업 판정보다 먼저 평가되는 상위 게이트."""
    NONE = "none"
    ADMIN_ONLY = "admin_only"
    OWNER_ONLY = "owner_only"


# --- 거부 시 처리 방식 (DenialPolicy) ---
@dataclass(frozen=True)
class Fallback:
    """거부 시 대신 내보낼 값. 호출 가능한 객체면 호출 결과를 사용합니다."""
    value: Any


@dataclass(frozen=True)
class Redirect:
    """거부 시 이동할 대상."""
    target: str


@dataclass(frozen=True)
class Degrade:
    """거부 시 빈(중립) 결과."""
    pass


DenialPolicy = Union[Fallback, Redirect, Degrade]


@dataclass(frozen=True)
class GuardOutcome:
    decision: Decision
    state: GuardState
    value: Any = None
    redirect_to: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOW


class Guard:
    """
    행위자의 역할 권한을 Role Store에서 조회하고, 접근 판정 결과를 강제합니다.

    owner/admin 행위자는 역할 조회 없이 판정됩니다. 그 외 행위자는 role_id가 가리키는
    역할을 조회하며, 조회는 제한 시간 안에 끝나야 합니다.
    """

    def __init__(
        self,
        role_service,
        timeout: Optional[float] = None,
        navigator: Optional[Callable[[str], None]] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        """
        Guard를 초기화합니다.

        Args:
            role_service: get_role_permissions(company_id, role_id)를 제공하는 Role Store.
            timeout: 역할 조회 제한 시간(초). 생략하면 설정 값을 사용합니다.
            navigator: Redirect 정책에서 호출할 이동 함수.
            executor: 역할 조회에 사용할 스레드 풀. 생략하면 새로 만듭니다.
        """
        settings = get_settings()
        self.role_service = role_service
        self.timeout = timeout if timeout is not None else settings.guard_timeout_seconds
        self.navigator = navigator
        self.executor = executor or ThreadPoolExecutor(
            max_workers=settings.guard_max_workers, thread_name_prefix="authz-guard"
        )

    def check(
        self,
        actor: Actor,
        resource: Union[Resource, str, None] = None,
        action: Union[Action, str] = Action.READ,
        mode: GateMode = GateMode.NONE,
        denial: Optional[DenialPolicy] = None,
        operation: Optional[Callable[[], Any]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> GuardOutcome:
        """
        보호된 작업 하나를 판정하고, 허용되면 operation을 실행합니다.

        Args:
            actor: 신원 확인 협력자가 전달한 행위자.
            resource: 판정할 리소스. None이면 게이트(mode) 판정만 수행하며, 게이트가 없으면 거부합니다.
            action: 판정할 작업.
            mode: ADMIN_ONLY / OWNER_ONLY 게이트.
            denial: 거부 시 처리 방식. 생략하면 Degrade.
            operation: 허용 시 실행할 작업. 반환값은 outcome.value가 됩니다.
            cancel_event: 호출자가 판정을 포기하면 set되는 이벤트.

        Returns:
            최종 상태(ALLOWED/DENIED)와 결과 값을 담은 GuardOutcome.
        """
        if not self._passes_gate(actor, mode):
            logger.info("guard_gate_denied", mode=mode.value, member_id=actor.member_id)
            return self._deny(denial)

        if resource is None:
            # 리소스 없는 호출은 상위 게이트를 통과했을 때만 허용됩니다.
            if mode is GateMode.NONE:
                logger.info("guard_missing_resource", member_id=actor.member_id)
                return self._deny(denial)
            return self._allow(operation)

        permissions: List[Permission] = []
        if not access_decision.is_owner_or_admin(actor):
            try:
                permissions = self._resolve_permissions(actor, cancel_event)
            except ResolutionError as e:
                logger.warning("guard_resolution_failed", member_id=actor.member_id,
                               role_id=actor.role_id, error=str(e))
                return self._deny(denial, error=e)

        decision = access_decision.decide(actor, permissions, resource, action)
        if decision is Decision.ALLOW:
            return self._allow(operation)
        return self._deny(denial)

    def decide(self, actor: Actor, resource: Union[Resource, str, None], action: Union[Action, str, None]) -> Decision:
        """API 계층용 판정. 리소스나 작업이 없거나 조회가 실패하면 DENY로 귀결됩니다."""
        if resource is None or action is None:
            return Decision.DENY
        return self.check(actor, resource, action).decision

    def require(
        self,
        actor: Actor,
        resource: Union[Resource, str, None] = None,
        action: Union[Action, str] = Action.READ,
        mode: GateMode = GateMode.NONE,
    ) -> None:
        """
        판정이 거부이면 AccessDeniedError를 발생시킵니다.

        Raises:
            AccessDeniedError: 거부되었을 때. 조회 실패 원인은 __cause__로 남습니다.
        """
        outcome = self.check(actor, resource, action, mode=mode)
        if not outcome.allowed:
            raise AccessDeniedError() from outcome.error

    def shutdown(self):
        self.executor.shutdown(wait=False)

    def _passes_gate(self, actor: Actor, mode: GateMode) -> bool:
        if mode is GateMode.OWNER_ONLY:
            return bool(actor.is_owner)
        if mode is GateMode.ADMIN_ONLY:
            return bool(actor.is_owner) or actor.role == ActorRole.ADMIN
        return True

    def _resolve_permissions(self, actor: Actor, cancel_event: Optional[threading.Event]) -> List[Permission]:
        if actor.role_id is None or actor.company_id is None:
            raise ResolutionError("Actor has no assigned role.")

        future = self.executor.submit(self.role_service.get_role_permissions, actor.company_id, actor.role_id)
        deadline = time.monotonic() + self.timeout
        while True:
            if cancel_event is not None and cancel_event.is_set():
                future.cancel()
                raise ResolutionError("Permission lookup was cancelled.")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                raise ResolutionError(f"Permission lookup timed out after {self.timeout}s.")
            try:
                return future.result(timeout=min(remaining, _POLL_INTERVAL))
            except FutureTimeout:
                continue
            except NotFoundError as e:
                raise ResolutionError(f"Assigned role '{actor.role_id}' could not be resolved.") from e
            except ResolutionError:
                raise
            except Exception as e:
                # 저장소 오류 등 모든 조회 실패는 거부로 처리
                raise ResolutionError("Permission lookup failed.") from e

    def _allow(self, operation: Optional[Callable[[], Any]]) -> GuardOutcome:
        value = operation() if operation is not None else None
        return GuardOutcome(decision=Decision.ALLOW, state=GuardState.ALLOWED, value=value)

    def _deny(self, denial: Optional[DenialPolicy], error: Optional[Exception] = None) -> GuardOutcome:
        if isinstance(denial, Fallback):
            value = denial.value() if callable(denial.value) else denial.value
            return GuardOutcome(decision=Decision.DENY, state=GuardState.DENIED, value=value, error=error)
        if isinstance(denial, Redirect):
            if self.navigator is not None:
                self.navigator(denial.target)
            return GuardOutcome(decision=Decision.DENY, state=GuardState.DENIED,
                                redirect_to=denial.target, error=error)
        return GuardOutcome(decision=Decision.DENY, state=GuardState.DENIED, error=error)
