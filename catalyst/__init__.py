"""
Catalyst provider fallback service.

AI generation, job search and email delivery through ordered provider
chains that fall back on capacity or availability failures.
"""

from version import __version__

__all__ = ["__version__"]
