"""Pydantic schemas for the electronic order backend.

Inbound: persisted document records and the order header used to reopen a
saved order. Outbound: request bodies for create/add/update/remove/cancel
and save/submit. Field names on the wire are the backend's camelCase; the
Python attributes are snake_case and serialization is always ``by_alias``.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .catalog import DocType, RecordId


class WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ============================================================================
# Inbound
# ============================================================================

class PersistedRecord(WireModel):
    """One document record as stored by the backend (parent or child)."""
    document_id: RecordId = Field(alias="documentID")
    parent_document_id: RecordId = Field(0, alias="parentDocumentID")
    document_type: Optional[str] = Field(None, alias="documentType")
    document_type_id: Optional[RecordId] = Field(None, alias="documentTypeID")
    order_number: Optional[str] = Field(None, alias="orderNumber")
    page_count: Optional[int] = Field(None, alias="pageCount")
    esubmit_file_name: Optional[str] = Field(None, alias="esubmitFileName")
    notes: Optional[str] = None
    esubmit_doc_elements: Optional[str] = Field(None, alias="esubmitDocElements")
    doc_type: Optional[DocType] = Field(None, alias="docType")
    title_officer_id: Optional[RecordId] = Field(None, alias="titleOfficerID")
    order_type: Optional[str] = Field(None, alias="orderType")
    trans_type: Optional[str] = Field(None, alias="transType")

    @property
    def is_parent(self) -> bool:
        return str(self.parent_document_id) == "0"


class OrderHeader(WireModel):
    payload_id: Optional[RecordId] = Field(None, alias="payloadID")
    order_number: Optional[str] = Field(None, alias="orderNumber")
    state_id: Optional[RecordId] = Field(None, alias="stateId")
    county_id: Optional[RecordId] = Field(None, alias="countyID")
    process_queue_id: Optional[RecordId] = Field(None, alias="processQueueID")
    order_type: Optional[str] = Field(None, alias="orderType")
    trans_type: Optional[str] = Field(None, alias="transType")


# ============================================================================
# Outbound: flattened rows
# ============================================================================

class ParentRecord(WireModel):
    order_id: int = Field(alias="orderId")
    row_index: int = Field(alias="rowIndex")
    document_id: Optional[RecordId] = Field(None, alias="documentID")
    order_number: Optional[str] = Field(None, alias="orderNumber")
    document_type: Optional[str] = Field(None, alias="documentType")
    document_type_id: Optional[RecordId] = Field(None, alias="documentTypeID")
    esubmit_file_name: Optional[str] = Field(None, alias="esubmitFileName")
    page_count: Optional[int] = Field(None, alias="pageCount")
    notes: Optional[str] = ""
    touched: bool = False
    processing_order: int = Field(alias="processingOrder")
    payload_id: Optional[RecordId] = Field(None, alias="payloadID")
    parent_document_id: RecordId = Field(0, alias="parentDocumentID")


class ChildRecord(WireModel):
    child_row_index: int = Field(alias="childRowIndex")
    parent_row_index: int = Field(alias="parentRowIndex")
    document_id: Optional[RecordId] = Field(None, alias="documentID")
    document_type: Optional[str] = Field(None, alias="documentType")
    document_type_id: Optional[RecordId] = Field(None, alias="documentTypeID")
    esubmit_file_name: Optional[str] = Field(None, alias="esubmitFileName")
    page_count: Optional[int] = Field(None, alias="pageCount")
    parent_document_id: Optional[RecordId] = Field(None, alias="parentDocumentID")
    order_number: Optional[str] = Field(None, alias="orderNumber")
    short_code: Optional[str] = Field(None, alias="shortCode")
    processing_order: int = Field(alias="processingOrder")
    payload_id: Optional[RecordId] = Field(None, alias="payloadID")


# ============================================================================
# Outbound: request bodies
# ============================================================================

class OrderHead(WireModel):
    customer_id: Optional[RecordId] = Field(None, alias="customerId")
    short_code: Optional[str] = Field(None, alias="shortCode")
    title_officer_id: Optional[RecordId] = Field(None, alias="titleOfficerID")
    recording_date: str = Field(alias="recordingDate")
    state: Optional[RecordId] = None
    county_id: Optional[RecordId] = Field(None, alias="countyID")
    trans_type: str = Field(alias="transType")
    order_type: str = Field(alias="orderType")
    process_queue_id: Optional[RecordId] = Field(None, alias="processQueueID")
    order_number: Optional[str] = Field(None, alias="orderNumber")


class SaveOrderHead(OrderHead):
    payload_id: Optional[RecordId] = Field(None, alias="payloadID")
    status: str


class OrderRequest(WireModel):
    """create-order and save/submit body: a head plus flattened rows."""
    head: Dict[str, Any]
    rows: List[Dict[str, Any]] = Field(default_factory=list)


class AddDocsRequest(WireModel):
    payload_id: Optional[RecordId] = Field(None, alias="payloadID")
    short_code: Optional[str] = Field(None, alias="shortCode")
    add_docs: List[Dict[str, Any]] = Field(alias="addDocs")


class DocumentUpdate(WireModel):
    esubmit_file_name: Optional[str] = Field(None, alias="esubmitFileName")
    page_count: Optional[int] = Field(None, alias="pageCount")
    order_number: Optional[str] = Field(None, alias="orderNumber")
    document_type: Optional[str] = Field(None, alias="documentType")
    document_type_id: Optional[RecordId] = Field(None, alias="documentTypeID")
    document_id: Optional[RecordId] = Field(None, alias="documentID")
    parent_document_id: Optional[RecordId] = Field(0, alias="parentDocumentID")


class UpdateDocRequest(WireModel):
    short_code: Optional[str] = Field(None, alias="shortCode")
    document_id: Optional[RecordId] = Field(None, alias="documentID")
    update: DocumentUpdate


class DocRef(WireModel):
    document_id: Optional[RecordId] = Field(None, alias="documentID")


class RemoveDocsRequest(WireModel):
    payload_id: Optional[RecordId] = Field(None, alias="payloadID")
    short_code: Optional[str] = Field(None, alias="shortCode")
    docs: List[DocRef]


class CancelOrderRequest(WireModel):
    payload_id: Optional[RecordId] = Field(None, alias="payloadID")
    short_code: Optional[str] = Field(None, alias="shortCode")
