"""Payload assembly: flatten the row tree and build backend request bodies.

Only typed parent rows and uploaded child slots are persisted. They are
numbered with one ``processingOrder`` sequence across the whole tree,
parents and children interleaved in display order.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..config import Settings, get_settings
from .context import OrderContext
from .rows import ChildRow, OrderRow
from .schemas import (
    AddDocsRequest,
    CancelOrderRequest,
    ChildRecord,
    DocRef,
    DocumentUpdate,
    OrderHead,
    OrderRequest,
    ParentRecord,
    RemoveDocsRequest,
    SaveOrderHead,
    UpdateDocRequest,
)


def format_recording_date(day: Optional[date] = None) -> str:
    """Recording date as sent to the backend (ISO ``YYYY-MM-DD``)."""
    return (day or date.today()).isoformat()


def parent_record(row: OrderRow, processing_order: int, payload_id: Any = None) -> Dict[str, Any]:
    return ParentRecord(
        order_id=row.order_id,
        row_index=row.row_index,
        document_id=row.document_id,
        order_number=row.order_number,
        document_type=row.document_type,
        document_type_id=row.document_type_id,
        esubmit_file_name=row.esubmit_file_name,
        page_count=row.page_count,
        notes=row.notes,
        touched=row.touched,
        processing_order=processing_order,
        payload_id=payload_id,
        parent_document_id=0,
    ).to_wire()


def child_record(
    child: ChildRow,
    processing_order: int,
    payload_id: Any = None,
    parent_document_id: Any = None,
) -> Dict[str, Any]:
    return ChildRecord(
        child_row_index=child.child_row_index,
        parent_row_index=child.parent_row_index,
        document_id=child.document_id,
        document_type=child.document_type,
        document_type_id=child.document_type_id,
        esubmit_file_name=child.esubmit_file_name,
        page_count=child.page_count,
        parent_document_id=child.parent_document_id if child.parent_document_id is not None else parent_document_id,
        order_number=child.order_number,
        short_code=child.short_code,
        processing_order=processing_order,
        payload_id=payload_id,
    ).to_wire()


def assemble_rows(rows: Iterable[OrderRow], payload_id: Any = None) -> List[Dict[str, Any]]:
    """Flatten the row tree into persisted records.

    Untyped parents (with their children) and pending child slots are
    skipped; ``processingOrder`` is 1-based and continues across parents and
    children.
    """
    records: List[Dict[str, Any]] = []
    processing_order = 1
    for row in rows:
        if row.document_type_id is None:
            continue
        records.append(parent_record(row, processing_order, payload_id))
        processing_order += 1

        for child in row.child_rows:
            if child.esubmit_file_name:
                records.append(child_record(child, processing_order, payload_id, row.document_id))
                processing_order += 1
    return records


def processing_order_of(
    rows: Sequence[OrderRow],
    row_index: int,
    child_row_index: Optional[int] = None,
) -> int:
    """The ``processingOrder`` a parent (or child slot) takes in the assembled payload.

    The addressed record is counted as persistable even if it is not yet
    typed or uploaded, so a document being added gets its final position.
    """
    processing_order = 1
    for i, row in enumerate(rows):
        if i == row_index and child_row_index is None:
            return processing_order
        typed = row.document_type_id is not None
        if typed:
            processing_order += 1
        for j, child in enumerate(row.child_rows):
            if i == row_index and j == child_row_index:
                return processing_order
            if typed and child.esubmit_file_name:
                processing_order += 1
    return processing_order


def _state_id(ctx: OrderContext) -> Any:
    return ctx.state.id if ctx.state else None


def _description(selection: Any, settings: Settings) -> str:
    if selection is not None and selection.description:
        return selection.description
    return settings.NOT_USED_LABEL


def _head_fields(ctx: OrderContext, recording_date: Optional[str], settings: Settings) -> Dict[str, Any]:
    return dict(
        customer_id=ctx.selected_customer.id if ctx.selected_customer else None,
        short_code=ctx.short_code,
        title_officer_id=ctx.title_officer.id if ctx.title_officer else None,
        recording_date=recording_date or format_recording_date(),
        state=_state_id(ctx),
        county_id=ctx.county.id if ctx.county else None,
        trans_type=_description(ctx.trans_type, settings),
        order_type=_description(ctx.order_type, settings),
    )


def electronic_data(
    ctx: OrderContext,
    submit: bool = False,
    recording_date: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Save/submit body: full head plus every persistable row.

    ``status`` is the draft marker unless ``submit`` is True.
    """
    settings = settings or get_settings()
    head = SaveOrderHead(
        **_head_fields(ctx, recording_date, settings),
        process_queue_id=ctx.process_queue.entity_id if ctx.process_queue else None,
        order_number=ctx.rows[0].order_number,
        payload_id=ctx.payload_id,
        status=settings.SUBMIT_STATUS if submit else settings.DRAFT_STATUS,
    )
    return OrderRequest(head=head.to_wire(), rows=assemble_rows(ctx.rows, ctx.payload_id)).to_wire()


def create_order_request(
    ctx: OrderContext,
    row_data: Mapping[str, Any],
    recording_date: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """create-order body for the first document of a new order.

    The process queue is identified by its queue name here, not its entity id.
    """
    settings = settings or get_settings()
    head = OrderHead(
        **_head_fields(ctx, recording_date, settings),
        process_queue_id=ctx.process_queue.queue_name if ctx.process_queue else None,
        order_number=row_data.get("orderNumber"),
    )
    return OrderRequest(head=head.to_wire(), rows=[dict(row_data)]).to_wire()


def add_docs_request(
    ctx: OrderContext,
    record: Mapping[str, Any],
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    settings = settings or get_settings()
    doc = {
        "titleOfficerID": ctx.title_officer.id if ctx.title_officer else None,
        "transType": _description(ctx.trans_type, settings),
        "orderType": _description(ctx.order_type, settings),
        "countyID": ctx.county.id if ctx.county else None,
        **record,
    }
    return AddDocsRequest(payload_id=ctx.payload_id, short_code=ctx.short_code, add_docs=[doc]).to_wire()


def update_doc_request(ctx: OrderContext, record: Mapping[str, Any]) -> Dict[str, Any]:
    update = DocumentUpdate(
        esubmit_file_name=record.get("esubmitFileName"),
        page_count=record.get("pageCount"),
        order_number=record.get("orderNumber"),
        document_type=record.get("documentType"),
        document_type_id=record.get("documentTypeID"),
        document_id=record.get("documentID"),
        parent_document_id=record.get("parentDocumentID", 0),
    )
    return UpdateDocRequest(
        short_code=ctx.short_code,
        document_id=record.get("documentID"),
        update=update,
    ).to_wire()


def remove_docs_request(ctx: OrderContext, document_ids: Iterable[Any]) -> Dict[str, Any]:
    return RemoveDocsRequest(
        payload_id=ctx.payload_id,
        short_code=ctx.short_code,
        docs=[DocRef(document_id=doc_id) for doc_id in document_ids],
    ).to_wire()


def cancel_order_request(ctx: OrderContext) -> Dict[str, Any]:
    return CancelOrderRequest(payload_id=ctx.payload_id, short_code=ctx.short_code).to_wire()
