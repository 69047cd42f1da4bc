from .enums import Action, ActorRole, Decision, Resource
from .entities import Actor, Permission

__all__ = ["Action", "Actor", "ActorRole", "Decision", "Permission", "Resource"]
