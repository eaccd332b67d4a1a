"""Existing-order reconciliation.

Rebuilds the row tree of a previously saved order from the backend's flat
record list:

1. resolve header selections (customer, officer, jurisdiction, types)
2. split records into parents (``parentDocumentID == 0``) and children
3. decode each parent's form-field blob
4. derive child slots from the parent's doc type helpers and fill the ones
   that have a matching child record
5. fetch every parent's helper metadata concurrently
6. commit the tree in one step once all fetches have settled, then append
   a placeholder row and reselect the saved process queue

Nothing is written to the context before step 6, so a half-built tree is
never visible.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from ..observability.metrics import helper_fetch_failures_total, reconciled_rows
from . import commands as cmd
from .catalog import CatalogSnapshot, DocType, DocTypeHelper, same_id
from .context import OrderContext
from .field_encoding import decode
from .ports import ServiceError
from .rows import ChildRow, OrderRow, Rows, initial_rows
from .schemas import OrderHeader, PersistedRecord

logger = logging.getLogger(__name__)

HelperFetcher = Callable[[Any], Awaitable[List[Dict[str, Any]]]]
DocTypesFetcher = Callable[[Any], Awaitable[List[Dict[str, Any]]]]


class ReconcileError(ValueError):
    """Raised when the saved order cannot be mapped onto the catalog."""
    pass


@dataclass
class ReconcileResult:
    """Outcome of a reconciliation.

    Attributes:
        context: The context with the rebuilt tree committed
        helper_failures: Row indexes whose helper metadata could not be fetched
        doc_types_failed: The county document type list could not be fetched
    """
    context: OrderContext
    helper_failures: List[int] = field(default_factory=list)
    doc_types_failed: bool = False


def resolve_existing_header(
    ctx: OrderContext,
    catalog: CatalogSnapshot,
    header: OrderHeader,
    records: Sequence[PersistedRecord],
) -> OrderContext:
    """Apply the saved order's header selections to ``ctx``.

    Raises:
        ReconcileError: If no customer can be resolved for the saved order
    """
    short_code = catalog.customer.short_code if catalog.customer else None
    customer = next((c for c in ctx.customers if c.short_code == short_code), None) or catalog.customer
    if customer is None:
        raise ReconcileError("Saved order has no resolvable customer")

    first = records[0] if records else None
    commands: List[cmd.OrderCommand] = [cmd.SelectCustomer(customer), cmd.SetCatalog(catalog)]

    if catalog.order_types and first is not None and first.order_type:
        commands.append(cmd.SelectOrderType(catalog.find_order_type(first.order_type)))
    if catalog.trans_types and first is not None and first.trans_type:
        commands.append(cmd.SelectTransType(catalog.find_trans_type(first.trans_type)))

    if first is not None:
        commands.append(cmd.SelectTitleOfficer(catalog.find_title_officer(first.title_officer_id)))

    state = catalog.find_state(header.state_id)
    if state is not None:
        commands.append(cmd.SelectState(state))
    else:
        logger.warning(f"Saved order state {header.state_id} not found in catalog")

    county = catalog.find_county(header.county_id)
    if county is not None:
        commands.append(cmd.SelectCounty(county))
    else:
        logger.warning(f"Saved order county {header.county_id} not found in catalog")

    commands += [cmd.SetPayloadId(header.payload_id), cmd.SetExistingOrder(True)]
    return cmd.reduce_all(ctx, commands)


def _child_slots(
    parent: PersistedRecord,
    parent_index: int,
    records: Sequence[PersistedRecord],
    order_number: Optional[str],
    short_code: Optional[str],
) -> Tuple[ChildRow, ...]:
    helpers = (parent.doc_type.helpers or []) if parent.doc_type else []
    slots = []
    for j, helper in enumerate(helpers):
        # First match wins when helpers share a display name
        match = next(
            (
                rec for rec in records
                if same_id(rec.parent_document_id, parent.document_id)
                and rec.document_type == helper.display_name
            ),
            None,
        )
        if match is not None:
            slot = ChildRow(
                child_row_index=j,
                parent_row_index=parent_index,
                document_type=helper.display_name,
                document_type_id=match.document_type_id,
                document_id=match.document_id,
                esubmit_file_name=match.esubmit_file_name,
                page_count=match.page_count,
                parent_document_id=match.parent_document_id,
                order_number=order_number,
                short_code=short_code,
            )
        else:
            slot = ChildRow(
                child_row_index=j,
                parent_row_index=parent_index,
                document_type=helper.display_name,
                document_type_id=helper.id,
                order_number=order_number,
                short_code=short_code,
            )
        slots.append(slot)
    return tuple(slots)


def build_parent_rows(
    records: Sequence[PersistedRecord],
    order_number: Optional[str] = None,
    short_code: Optional[str] = None,
) -> Rows:
    """Rebuild parent rows and their child slots from the flat record list."""
    parents = [rec for rec in records if rec.is_parent]
    rows = []
    for i, rec in enumerate(parents):
        rows.append(OrderRow(
            row_index=i,
            order_id=i + 1,
            document_id=rec.document_id,
            order_number=rec.order_number,
            document_type=rec.document_type,
            document_type_id=rec.document_type_id,
            esubmit_file_name=rec.esubmit_file_name,
            page_count=rec.page_count or 0,
            notes=rec.notes or "",
            touched=True,
            show_attachments=False,
            require_nr=rec.doc_type.require_nr if rec.doc_type else 0,
            selected_doc_type=rec.doc_type,
            esubmit_doc_elements=rec.esubmit_doc_elements or "",
            existing_form_data=decode(rec.esubmit_doc_elements),
            child_rows=_child_slots(rec, i, records, order_number, short_code),
        ))
    return tuple(rows)


async def _fetch_one(row: OrderRow, fetch_helpers: HelperFetcher) -> Optional[Tuple[DocTypeHelper, ...]]:
    try:
        data = await fetch_helpers(row.document_type_id)
        return tuple(DocTypeHelper.model_validate(item) for item in data)
    except (ServiceError, ValidationError) as e:
        helper_fetch_failures_total.inc()
        logger.error(
            f"Helper fetch failed for doc type {row.document_type_id}: {e}",
            exc_info=True,
            extra={"operation": "fetch_doc_type_helpers", "row_index": row.row_index},
        )
        return None


async def fetch_row_helpers(
    rows: Sequence[OrderRow],
    fetch_helpers: HelperFetcher,
) -> List[Optional[Tuple[DocTypeHelper, ...]]]:
    """Fetch helper metadata for every row concurrently.

    Returns one entry per row, in row order; ``None`` marks a failed fetch.
    One failure does not cancel the other requests.
    """
    return list(await asyncio.gather(*(_fetch_one(row, fetch_helpers) for row in rows)))


def commit_reconciled_rows(
    ctx: OrderContext,
    rows: Rows,
    helpers: Sequence[Optional[Tuple[DocTypeHelper, ...]]],
    header: OrderHeader,
) -> OrderContext:
    """Swap in the rebuilt tree with fetched helpers merged, in one step."""
    merged = []
    commands: List[cmd.OrderCommand] = []
    for row, row_helpers in zip(rows, helpers):
        if row_helpers is not None:
            row = replace(row, helpers=row_helpers)
            if row.document_type_id is not None:
                commands.append(cmd.SetDocTypeHelpers(row.document_type_id, row_helpers))
        merged.append(row)

    if merged:
        commands += [cmd.ReplaceRows(tuple(merged)), cmd.AddRow()]
    else:
        commands.append(cmd.ReplaceRows(initial_rows()))
    ctx = cmd.reduce_all(ctx, commands)

    saved_queue = next(
        (queue for queue in ctx.process_queues if same_id(queue.entity_id, header.process_queue_id)),
        None,
    )
    if saved_queue is not None:
        ctx = cmd.reduce(ctx, cmd.SelectProcessQueue(saved_queue))
    return ctx


async def _fetch_doc_types(county_id: Any, fetch_doc_types: DocTypesFetcher) -> Optional[Tuple[DocType, ...]]:
    try:
        data = await fetch_doc_types(county_id)
        return tuple(DocType.model_validate(item) for item in data)
    except (ServiceError, ValidationError) as e:
        logger.error(
            f"Doc type fetch failed for county {county_id}: {e}",
            exc_info=True,
            extra={"operation": "fetch_doc_types"},
        )
        return None


async def reconcile_existing_order(
    ctx: OrderContext,
    catalog: CatalogSnapshot,
    header: OrderHeader,
    records: Sequence[PersistedRecord],
    fetch_helpers: HelperFetcher,
    fetch_doc_types: Optional[DocTypesFetcher] = None,
) -> ReconcileResult:
    """Rebuild ``ctx`` for a saved order. See module docstring for the steps.

    When ``fetch_doc_types`` is given, the county's document type list is
    fetched alongside the helpers and committed with the tree.
    """
    ctx = resolve_existing_header(ctx, catalog, header, records)
    rows = build_parent_rows(records, header.order_number, ctx.short_code)

    doc_types: Optional[Tuple[DocType, ...]] = None
    if fetch_doc_types is not None and ctx.county is not None:
        doc_types, helpers = await asyncio.gather(
            _fetch_doc_types(ctx.county.id, fetch_doc_types),
            fetch_row_helpers(rows, fetch_helpers),
        )
    else:
        helpers = await fetch_row_helpers(rows, fetch_helpers)

    if doc_types is not None:
        ctx = cmd.reduce(ctx, cmd.SetDocTypes(doc_types))
    ctx = commit_reconciled_rows(ctx, rows, helpers, header)

    reconciled_rows.observe(len(rows))
    failures = [row.row_index for row, row_helpers in zip(rows, helpers) if row_helpers is None]
    return ReconcileResult(
        context=ctx,
        helper_failures=failures,
        doc_types_failed=fetch_doc_types is not None and ctx.county is not None and doc_types is None,
    )
