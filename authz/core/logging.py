"""structlog 기반 구조화 로깅 설정.

개발 환경에서는 콘솔 렌더러를, 그 외에는 JSON 렌더러를 사용합니다.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import Processor

from authz.core.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """애플리케이션 전역 로깅을 설정합니다.

    Args:
        settings: 사용할 설정. 생략하면 환경 변수에서 로드합니다.
    """
    if settings is None:
        settings = get_settings()

    level = getattr(logging, settings.log_level)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development or settings.log_format == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # SQLAlchemy 등 서드파티 로거용
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: Optional[str] = None, **initial_values: Any) -> Any:
    """구조화 로거를 반환합니다."""
    return structlog.get_logger(name or "authz", **initial_values)
