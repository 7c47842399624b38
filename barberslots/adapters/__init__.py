"""
Adapters layer - Shop data sources.
"""

from .json_store import JsonShopStore

__all__ = ["JsonShopStore"]
