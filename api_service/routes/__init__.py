"""
API route modules, one per provider chain plus the debug dashboard.
"""

from .ai import router as ai_router
from .debug import router as debug_router
from .email import router as email_router
from .jobs import router as jobs_router

__all__ = [
    "ai_router",
    "debug_router",
    "email_router",
    "jobs_router",
]
