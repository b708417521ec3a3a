"""
Analytics API routes.
"""

from .api import create_analytics_router

__all__ = ["create_analytics_router"]
