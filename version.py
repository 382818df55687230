"""
Version information for the Catalyst provider service.

This file is the single source of truth for version numbers.
Both the catalyst package and the API service import from here.
"""

__version__ = "0.1.0"
__version_info__ = (0, 1, 0)
