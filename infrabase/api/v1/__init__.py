# infrabase/api/v1/__init__.py
"""
API v1 modules
"""

from . import admin

__all__ = ["admin"]
