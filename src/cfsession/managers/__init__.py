"""Resource managers wired into a session.

Each manager wraps one or more Cloud Controller repositories for a resource
type. ``DomainManager.repo`` and ``RouteManager.repo`` are public because
``AppManager`` is built on top of them.
"""

from .apps import AppManager
from .base import ResourceManager, ResourceRepository
from .buildpacks import BuildpackManager
from .domains import DomainManager, DomainRepository
from .env_var_groups import EVGManager
from .orgs import OrgManager
from .quotas import QuotaManager
from .routes import RouteManager, RouteRepository
from .security_groups import ASGManager
from .services import ServiceManager
from .spaces import SpaceManager
from .stacks import StackManager
from .users import UserManager

__all__ = [
    "ASGManager",
    "AppManager",
    "BuildpackManager",
    "DomainManager",
    "DomainRepository",
    "EVGManager",
    "OrgManager",
    "QuotaManager",
    "ResourceManager",
    "ResourceRepository",
    "RouteManager",
    "RouteRepository",
    "ServiceManager",
    "SpaceManager",
    "StackManager",
    "UserManager",
]
