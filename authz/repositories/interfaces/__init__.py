from .company import ICompanyRepository
from .member import IMemberRepository
from .role import IRoleRepository

__all__ = ["ICompanyRepository", "IMemberRepository", "IRoleRepository"]
