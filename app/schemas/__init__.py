"""
Request and response schemas
"""

from .common import ApiResponse, Page

__all__ = ["ApiResponse", "Page"]
