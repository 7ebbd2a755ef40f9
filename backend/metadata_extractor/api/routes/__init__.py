"""API route modules"""
from .sessions import router as sessions_router
from .users import router as users_router
from .help import router as help_router

__all__ = ["sessions_router", "users_router", "help_router"]
