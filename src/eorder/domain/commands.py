"""Typed order commands and the single reducer that applies them.

Each command is a small frozen dataclass. ``reduce(context, command)``
returns the next ``OrderContext``; the input context is never modified.
``OrderCommand`` is the closed set of accepted commands and
``HANDLERS`` must cover every member of it.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from .catalog import (
    CatalogSnapshot,
    County,
    Customer,
    DocType,
    DocTypeHelper,
    EndorsementBox,
    Margins,
    OrderType,
    ProcessQueue,
    RecordId,
    StateRecord,
    TitleOfficer,
    TransType,
    parse_endorsement_area,
    parse_margins,
    same_id,
)
from .context import OrderContext
from . import rows as row_tree


# ============================================================================
# Catalog and lookup commands
# ============================================================================

@dataclass(frozen=True)
class SetCustomersList:
    customers: Tuple[Customer, ...]


@dataclass(frozen=True)
class SetCatalog:
    """Store the presets fetched for the selected customer."""
    catalog: Optional[CatalogSnapshot]


@dataclass(frozen=True)
class SetPresetsLoading:
    loading: bool


@dataclass(frozen=True)
class SetDocTypes:
    """Replace the document type list; PCOR types are dropped."""
    doc_types: Tuple[DocType, ...]


@dataclass(frozen=True)
class SetDocTypeHelpers:
    doc_type_id: RecordId
    helpers: Tuple[DocTypeHelper, ...]


@dataclass(frozen=True)
class SetExistingOrder:
    is_existing_order: bool


# ============================================================================
# Selection commands
# ============================================================================

@dataclass(frozen=True)
class SelectCustomer:
    """Select a customer; clears every selection that depends on it."""
    customer: Customer


@dataclass(frozen=True)
class SelectTitleOfficer:
    title_officer: Optional[TitleOfficer]


@dataclass(frozen=True)
class SelectState:
    """Select a state; clears county, process queue and row doc types."""
    state: StateRecord


@dataclass(frozen=True)
class SelectCounty:
    """Select a county and derive its queues, cut-off time and page layout."""
    county: County


@dataclass(frozen=True)
class SelectProcessQueue:
    process_queue: Optional[ProcessQueue]


@dataclass(frozen=True)
class SelectOrderType:
    order_type: Optional[OrderType]


@dataclass(frozen=True)
class SelectTransType:
    trans_type: Optional[TransType]


@dataclass(frozen=True)
class SetPayloadId:
    payload_id: Optional[RecordId]


@dataclass(frozen=True)
class ResetTable:
    """Back to a single placeholder row and no document types."""


@dataclass(frozen=True)
class ResetCurrentOrder:
    """Clear the customer, everything derived from it, and the table."""


# ============================================================================
# Row tree commands
# ============================================================================

@dataclass(frozen=True)
class AddRow:
    pass


@dataclass(frozen=True)
class RemoveRow:
    index: int


@dataclass(frozen=True)
class UpdateRow:
    """Shallow-merge ``changes`` into the row at ``changes["row_index"]``."""
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class UpdateChild:
    """Shallow-merge ``changes`` into the child at (parent_row_index, child_row_index)."""
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class AddChild:
    child: row_tree.ChildRow


@dataclass(frozen=True)
class ReindexChildParents:
    index: int


@dataclass(frozen=True)
class AssignDocType:
    row_index: int
    doc_type: DocType


@dataclass(frozen=True)
class ResetRowDocTypes:
    pass


@dataclass(frozen=True)
class ReplaceRows:
    """Swap in a complete row sequence (used to commit a reconciled tree)."""
    rows: Tuple[row_tree.OrderRow, ...]


OrderCommand = Union[
    SetCustomersList,
    SetCatalog,
    SetPresetsLoading,
    SetDocTypes,
    SetDocTypeHelpers,
    SetExistingOrder,
    SelectCustomer,
    SelectTitleOfficer,
    SelectState,
    SelectCounty,
    SelectProcessQueue,
    SelectOrderType,
    SelectTransType,
    SetPayloadId,
    ResetTable,
    ResetCurrentOrder,
    AddRow,
    RemoveRow,
    UpdateRow,
    UpdateChild,
    AddChild,
    ReindexChildParents,
    AssignDocType,
    ResetRowDocTypes,
    ReplaceRows,
]


# ============================================================================
# Handlers
# ============================================================================

def _clear_customer_selections(ctx: OrderContext) -> OrderContext:
    return replace(
        ctx,
        catalog=None,
        short_code=None,
        payload_id=None,
        title_officer=None,
        state=None,
        county=None,
        process_queue=None,
        process_queues=(),
        cut_off_time=None,
        order_type=None,
        trans_type=None,
        margins=Margins(),
        endorsement_box=EndorsementBox(),
        doc_types=(),
    )


def _select_customer(ctx: OrderContext, cmd: SelectCustomer) -> OrderContext:
    ctx = _clear_customer_selections(ctx)
    return replace(ctx, selected_customer=cmd.customer, short_code=cmd.customer.short_code)


def _select_state(ctx: OrderContext, cmd: SelectState) -> OrderContext:
    return replace(
        ctx,
        state=cmd.state,
        rows=row_tree.reset_row_doc_types(ctx.rows),
        county=None,
        process_queues=(),
        process_queue=None,
        cut_off_time=None,
        margins=Margins(),
        endorsement_box=EndorsementBox(),
        doc_types=(),
    )


def _select_county(ctx: OrderContext, cmd: SelectCounty) -> OrderContext:
    ctx = replace(
        ctx,
        county=cmd.county,
        rows=row_tree.reset_row_doc_types(ctx.rows),
        process_queue=None,
        doc_types=(),
    )
    record = ctx.county_record
    queues = tuple(record.visible_process_queues) if record else ()
    cut_off_time = record.cut_off_time if record else None
    margins = parse_margins(ctx.county_margins) if ctx.county_margins else Margins()
    endorsement_box = (
        parse_endorsement_area(ctx.county_endorsement_box)
        if ctx.county_endorsement_box else EndorsementBox()
    )
    return replace(
        ctx,
        process_queues=queues,
        cut_off_time=cut_off_time,
        margins=margins,
        endorsement_box=endorsement_box,
    )


def _set_doc_types(ctx: OrderContext, cmd: SetDocTypes) -> OrderContext:
    return replace(ctx, doc_types=tuple(dt for dt in cmd.doc_types if dt.is_pcor == 0))


def _set_doc_type_helpers(ctx: OrderContext, cmd: SetDocTypeHelpers) -> OrderContext:
    doc_types = tuple(
        dt.model_copy(update={"helpers": list(cmd.helpers)}) if same_id(dt.id, cmd.doc_type_id) else dt
        for dt in ctx.doc_types
    )
    return replace(ctx, doc_types=doc_types)


def _reset_table(ctx: OrderContext, cmd: Any = None) -> OrderContext:
    return replace(ctx, rows=row_tree.initial_rows(), doc_types=())


def _reset_current_order(ctx: OrderContext, cmd: ResetCurrentOrder) -> OrderContext:
    ctx = replace(ctx, selected_customer=None)
    ctx = _clear_customer_selections(ctx)
    return _reset_table(ctx)


def _replace_rows(ctx: OrderContext, cmd: ReplaceRows) -> OrderContext:
    if not cmd.rows:
        raise row_tree.RowTreeError("Row tree cannot be empty")
    return replace(ctx, rows=tuple(cmd.rows))


def _assign_doc_type(ctx: OrderContext, cmd: AssignDocType) -> OrderContext:
    return replace(
        ctx,
        rows=row_tree.assign_doc_type(ctx.rows, cmd.row_index, cmd.doc_type, ctx.short_code),
    )


HANDLERS: Dict[type, Callable[[OrderContext, Any], OrderContext]] = {
    SetCustomersList: lambda ctx, cmd: replace(ctx, customers=tuple(cmd.customers)),
    SetCatalog: lambda ctx, cmd: replace(ctx, catalog=cmd.catalog),
    SetPresetsLoading: lambda ctx, cmd: replace(ctx, presets_loading=cmd.loading),
    SetDocTypes: _set_doc_types,
    SetDocTypeHelpers: _set_doc_type_helpers,
    SetExistingOrder: lambda ctx, cmd: replace(ctx, is_existing_order=cmd.is_existing_order),
    SelectCustomer: _select_customer,
    SelectTitleOfficer: lambda ctx, cmd: replace(ctx, title_officer=cmd.title_officer),
    SelectState: _select_state,
    SelectCounty: _select_county,
    SelectProcessQueue: lambda ctx, cmd: replace(ctx, process_queue=cmd.process_queue),
    SelectOrderType: lambda ctx, cmd: replace(ctx, order_type=cmd.order_type),
    SelectTransType: lambda ctx, cmd: replace(ctx, trans_type=cmd.trans_type),
    SetPayloadId: lambda ctx, cmd: replace(ctx, payload_id=cmd.payload_id),
    ResetTable: _reset_table,
    ResetCurrentOrder: _reset_current_order,
    AddRow: lambda ctx, cmd: replace(ctx, rows=row_tree.add_row(ctx.rows)),
    RemoveRow: lambda ctx, cmd: replace(ctx, rows=row_tree.remove_row(ctx.rows, cmd.index)),
    UpdateRow: lambda ctx, cmd: replace(ctx, rows=row_tree.update_row(ctx.rows, cmd.changes)),
    UpdateChild: lambda ctx, cmd: replace(ctx, rows=row_tree.update_child(ctx.rows, cmd.changes)),
    AddChild: lambda ctx, cmd: replace(ctx, rows=row_tree.add_child(ctx.rows, cmd.child)),
    ReindexChildParents: lambda ctx, cmd: replace(ctx, rows=row_tree.reindex_child_parents(ctx.rows, cmd.index)),
    AssignDocType: _assign_doc_type,
    ResetRowDocTypes: lambda ctx, cmd: replace(ctx, rows=row_tree.reset_row_doc_types(ctx.rows)),
    ReplaceRows: _replace_rows,
}


def reduce(ctx: OrderContext, command: OrderCommand) -> OrderContext:
    """Apply one command and return the next context.

    Raises:
        TypeError: If ``command`` is not one of the ``OrderCommand`` variants
        RowTreeError: If a row command references a missing row or field
    """
    handler = HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"Unknown order command: {type(command).__name__}")
    return handler(ctx, command)


def reduce_all(ctx: OrderContext, commands: Sequence[OrderCommand]) -> OrderContext:
    for command in commands:
        ctx = reduce(ctx, command)
    return ctx
