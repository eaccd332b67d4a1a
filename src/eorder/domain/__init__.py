"""Electronic order domain: codec, catalog, row tree, readiness, payload, reconciliation.

Pure logic only; backend access goes through ``ports.ElectronicOrderServicePort``.
"""

from .context import OrderContext
from .commands import OrderCommand, reduce, reduce_all
from .field_encoding import decode, encode
from .readiness import (
    are_required_fields_set,
    are_optional_fields_set,
    is_ready_for_table,
    are_parent_rows_ready,
    are_child_rows_ready,
    is_ready_to_submit,
)
from .rows import ChildRow, OrderRow, RowTreeError

__all__ = [
    "OrderContext",
    "OrderCommand",
    "reduce",
    "reduce_all",
    "decode",
    "encode",
    "are_required_fields_set",
    "are_optional_fields_set",
    "is_ready_for_table",
    "are_parent_rows_ready",
    "are_child_rows_ready",
    "is_ready_to_submit",
    "ChildRow",
    "OrderRow",
    "RowTreeError",
]
