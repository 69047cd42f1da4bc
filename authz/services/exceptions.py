# authz/services/exceptions.py

# --- Validation Exceptions ---
class ValidationError(Exception):
    """역할 정의가 잘못되었을 때 (빈 이름, 빈 권한, 중복 이름, 알 수 없는 리소스/작업)"""
    kind = "ValidationError"

# --- Not Found Exceptions ---
class NotFoundError(Exception):
    """대상이 회사(테넌트) 범위 안에 존재하지 않을 때"""
    kind = "NotFoundError"

class RoleNotFoundError(NotFoundError):
    """역할을 찾을 수 없을 때"""
    pass

class MemberNotFoundError(NotFoundError):
    """멤버를 찾을 수 없을 때"""
    pass

class CompanyNotFoundError(NotFoundError):
    """회사를 찾을 수 없을 때"""
    pass

# --- Access Exceptions ---
class ResolutionError(Exception):
    """행위자나 역할 데이터를 가져오지 못했을 때. Guard는 항상 거부로 처리합니다."""
    kind = "ResolutionError"

class AccessDeniedError(Exception):
    """Guard가 거부한 요청. 어떤 권한이 빠졌는지는 드러내지 않습니다."""
    kind = "AccessDenied"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)

class AuthenticationError(Exception):
    """요청에서 행위자 신원을 확인할 수 없을 때"""
    kind = "AuthenticationError"
