from .company import Company
from .member import Member
from .permission import RolePermission
from .role import Role

__all__ = ["Company", "Member", "Role", "RolePermission"]
