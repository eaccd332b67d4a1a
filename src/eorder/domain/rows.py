"""Row tree: parent document rows and their child (sub-document) slots.

Rows are immutable values. Every operation here takes the current row
sequence and returns a new one, so callers can swap it into the order
context in a single assignment.

Invariants kept by these operations:
- the sequence is never empty (a placeholder row always exists)
- ``row_index`` is a dense 0-based run and ``order_id`` a dense 1-based run
- children are owned by their parent; ``parent_row_index`` is only a lookup key
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .catalog import DocType, DocTypeHelper, RecordId


class RowTreeError(Exception):
    """Raised for invalid row tree operations (bad index, unknown field)."""
    pass


@dataclass(frozen=True)
class ChildRow:
    """A sub-document slot; pending until a file has been uploaded."""

    child_row_index: int
    parent_row_index: int
    document_type: Optional[str] = None
    document_type_id: Optional[RecordId] = None
    document_id: Optional[RecordId] = None
    esubmit_file_name: Optional[str] = None
    page_count: Optional[int] = None
    parent_document_id: Optional[RecordId] = None
    order_number: Optional[str] = None
    short_code: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return not self.esubmit_file_name

    @property
    def is_complete(self) -> bool:
        return bool(self.esubmit_file_name) and bool(self.page_count)


@dataclass(frozen=True)
class OrderRow:
    """A parent document row."""

    row_index: int
    order_id: int
    document_id: Optional[RecordId] = None
    order_number: Optional[str] = None
    document_type: Optional[str] = None
    document_type_id: Optional[RecordId] = None
    esubmit_file_name: Optional[str] = None
    page_count: int = 0
    notes: str = ""
    touched: bool = False
    show_attachments: bool = False
    require_nr: int = 0
    processing_order: Optional[int] = None
    helpers: Optional[Tuple[DocTypeHelper, ...]] = None
    selected_doc_type: Optional[DocType] = None
    esubmit_doc_elements: str = ""
    existing_form_data: Dict[str, str] = field(default_factory=dict)
    child_rows: Tuple[ChildRow, ...] = ()


Rows = Tuple[OrderRow, ...]

_ROW_FIELDS = frozenset(f.name for f in fields(OrderRow))
_CHILD_FIELDS = frozenset(f.name for f in fields(ChildRow))


def _merge(record, partial: Mapping[str, Any], allowed: frozenset):
    unknown = set(partial) - allowed
    if unknown:
        raise RowTreeError(f"Unknown field(s) for {type(record).__name__}: {sorted(unknown)}")
    changes = dict(partial)
    if "child_rows" in changes:
        changes["child_rows"] = tuple(changes["child_rows"])
    if "helpers" in changes and changes["helpers"] is not None:
        changes["helpers"] = tuple(changes["helpers"])
    return replace(record, **changes)


def _check_row_index(rows: Sequence[OrderRow], index: int) -> None:
    if not 0 <= index < len(rows):
        raise RowTreeError(f"Row index {index} out of range (rows: {len(rows)})")


def new_row(row_index: int, order_number: Optional[str] = None) -> OrderRow:
    """Create an empty placeholder row at the given position."""
    return OrderRow(row_index=row_index, order_id=row_index + 1, order_number=order_number)


def initial_rows() -> Rows:
    """The row sequence of a fresh order: one empty placeholder."""
    return (new_row(0),)


def reindex_rows(rows: Iterable[OrderRow]) -> Rows:
    """Renumber ``row_index``/``order_id``/``processing_order`` densely."""
    return tuple(
        replace(row, row_index=i, order_id=i + 1, processing_order=i + 1)
        for i, row in enumerate(rows)
    )


def add_row(rows: Sequence[OrderRow]) -> Rows:
    """Append a placeholder row sharing row 0's order number."""
    order_number = rows[0].order_number if rows else None
    return (*rows, new_row(len(rows), order_number))


def remove_row(rows: Sequence[OrderRow], index: int) -> Rows:
    """Remove the row at ``index`` and renumber the rest.

    Removing the only row leaves a fresh placeholder in its place.
    """
    _check_row_index(rows, index)
    remaining = [row for i, row in enumerate(rows) if i != index]
    if not remaining:
        return (new_row(0, rows[index].order_number),)
    return reindex_rows(remaining)


def update_row(rows: Sequence[OrderRow], partial: Mapping[str, Any]) -> Rows:
    """Shallow-merge ``partial`` into the row at ``partial["row_index"]``."""
    if "row_index" not in partial:
        raise RowTreeError("Partial row update requires row_index")
    index = partial["row_index"]
    _check_row_index(rows, index)
    return tuple(
        _merge(row, partial, _ROW_FIELDS) if i == index else row
        for i, row in enumerate(rows)
    )


def _with_children(rows: Sequence[OrderRow], parent_index: int, children) -> Rows:
    return tuple(
        replace(row, child_rows=tuple(children)) if i == parent_index else row
        for i, row in enumerate(rows)
    )


def update_child(rows: Sequence[OrderRow], partial: Mapping[str, Any]) -> Rows:
    """Shallow-merge ``partial`` into the child at (parent_row_index, child_row_index)."""
    try:
        parent_index = partial["parent_row_index"]
        child_index = partial["child_row_index"]
    except KeyError as e:
        raise RowTreeError(f"Partial child update requires {e.args[0]}") from e

    _check_row_index(rows, parent_index)
    children = rows[parent_index].child_rows
    if not 0 <= child_index < len(children):
        raise RowTreeError(
            f"Child index {child_index} out of range for row {parent_index} (children: {len(children)})"
        )

    updated = [
        _merge(child, partial, _CHILD_FIELDS) if j == child_index else child
        for j, child in enumerate(children)
    ]
    return _with_children(rows, parent_index, updated)


def add_child(rows: Sequence[OrderRow], child: ChildRow) -> Rows:
    """Append ``child`` to the parent found by ``child.parent_row_index``."""
    _check_row_index(rows, child.parent_row_index)
    parent = rows[child.parent_row_index]
    return _with_children(rows, child.parent_row_index, (*parent.child_rows, child))


def reindex_child_parents(rows: Sequence[OrderRow], index: int) -> Rows:
    """Point every child of row ``index`` back at that index."""
    _check_row_index(rows, index)
    children = [replace(child, parent_row_index=index) for child in rows[index].child_rows]
    return _with_children(rows, index, children)


def reset_row_doc_type(row: OrderRow) -> OrderRow:
    """Clear the document type and everything derived from it, keeping ids and notes.

    Child slots stay on the row but are neither checked nor sent while it is
    untyped; the next ``assign_doc_type`` rebuilds them.
    """
    return replace(
        row,
        document_type=None,
        document_type_id=None,
        selected_doc_type=None,
        require_nr=0,
        show_attachments=False,
        helpers=None,
    )


def reset_row_doc_types(rows: Iterable[OrderRow]) -> Rows:
    return tuple(reset_row_doc_type(row) for row in rows)


def build_child_slots(
    helpers: Optional[Iterable[DocTypeHelper]],
    parent_row_index: int,
    order_number: Optional[str] = None,
    short_code: Optional[str] = None,
) -> Tuple[ChildRow, ...]:
    """One pending slot per declared helper type."""
    return tuple(
        ChildRow(
            child_row_index=j,
            parent_row_index=parent_row_index,
            document_type=helper.display_name,
            document_type_id=helper.id,
            order_number=order_number,
            short_code=short_code,
        )
        for j, helper in enumerate(helpers or ())
    )


def assign_doc_type(
    rows: Sequence[OrderRow],
    index: int,
    doc_type: DocType,
    short_code: Optional[str] = None,
) -> Rows:
    """Set a row's document type and rebuild its child slots from the type's helpers."""
    _check_row_index(rows, index)
    row = rows[index]
    helpers = tuple(doc_type.helpers) if doc_type.helpers is not None else None
    updated = replace(
        row,
        document_type=doc_type.description,
        document_type_id=doc_type.id,
        selected_doc_type=doc_type,
        require_nr=doc_type.require_nr,
        helpers=helpers,
        child_rows=build_child_slots(helpers, index, row.order_number, short_code),
    )
    return tuple(updated if i == index else r for i, r in enumerate(rows))
