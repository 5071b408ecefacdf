"""
API Services - state shared across lodging routers.
"""

from .editor_registry import EditorRegistry, TourData

__all__ = ["EditorRegistry", "TourData"]
