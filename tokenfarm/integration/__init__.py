"""
Integration layer: stateful service over the pure farm core
"""

from .farm_service import DEFAULT_FARM_ACCOUNT, FarmService

__all__ = ["DEFAULT_FARM_ACCOUNT", "FarmService"]
