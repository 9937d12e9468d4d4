"""Database package."""

from footprint.db.models import (
    Base,
    Product,
    ProductCarbonFootprint,
    ProductCarbonFootprintMaterial,
)
from footprint.db.session import (
    ReadSessionFactory,
    create_read_engine,
    dispose_read_engine,
    get_read_session_factory,
    read_session,
)

__all__ = [
    "ReadSessionFactory",
    "create_read_engine",
    "dispose_read_engine",
    "get_read_session_factory",
    "read_session",
    "Base",
    "Product",
    "ProductCarbonFootprint",
    "ProductCarbonFootprintMaterial",
]
