from .auth import router as auth_router
from .entries import router as entries_router
from .files import router as files_router

__all__ = [
    "auth_router",
    "entries_router",
    "files_router",
]
