from .base import Base
from .user import User
from .role import Role
from .user_role import UserRole
from .session import Session
from .app import App
from .user_app import UserApp

__all__ = [
    "Base",
    "User",
    "Role",
    "UserRole",
    "Session",
    "App",
    "UserApp",
]
