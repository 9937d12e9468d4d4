"""Product LCA impact aggregation engine."""

from footprint.modules.lca.service import (
    aggregate_product_impacts,
    aggregate_stored_product_impacts,
)

__all__ = ["aggregate_product_impacts", "aggregate_stored_product_impacts"]
