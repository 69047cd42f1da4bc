from enum import Enum


class Resource(str, Enum):
    """권한으로 보호되는 기능 영역."""
    CONVERSATIONS = "conversations"
    TEMPLATES = "templates"
    DASHBOARD = "dashboard"
    AUTOMATIONS = "automations"
    CONTACTS = "contacts"
    INTEGRATIONS = "integrations"
    ANALYTICS = "analytics"
    SETTINGS = "settings"


class Action(str, Enum):
    """리소스에 대한 작업 종류. manage는 다른 작업을 포함하지 않습니다."""
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    MANAGE = "manage"


class ActorRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    AGENT = "agent"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW
