# rocket_ops/models/__init__.py
from .collection import StoredCollection

# Export all models
__all__ = [
    "StoredCollection",
]
