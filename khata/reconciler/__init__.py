"""Import and legacy-shape reconciliation."""

from khata.reconciler.migration import (
    build_state,
    flatten_legacy_transactions,
    has_legacy_shape,
    reconcile_import,
    validate_collections,
)

__all__ = [
    "build_state",
    "flatten_legacy_transactions",
    "has_legacy_shape",
    "reconcile_import",
    "validate_collections",
]
