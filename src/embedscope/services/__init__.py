"""
Service layer.

Helpers that sit around the estimators rather than inside them, such as
caching embedded coordinates on disk.
"""

from .coordinate_cache import export_data, import_data

__all__ = [
    "export_data",
    "import_data",
]
