from .numeric import populate_numeric_catalog
from .rooms import populate_rooms_catalog

__all__ = [
    'populate_numeric_catalog',
    'populate_rooms_catalog',
]
