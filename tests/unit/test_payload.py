"""Unit tests for payload assembly and request bodies."""

from eorder.config import Settings
from eorder.domain import commands as cmd
from eorder.domain.context import OrderContext
from eorder.domain.payload import (
    add_docs_request,
    assemble_rows,
    cancel_order_request,
    create_order_request,
    electronic_data,
    parent_record,
    processing_order_of,
    remove_docs_request,
    update_doc_request,
)


def typed_tree(header_context, deed_doc_type, upload_child=True):
    """Row 0 is a typed deed (child uploaded if requested), row 1 typed, row 2 a placeholder."""
    ctx = cmd.reduce_all(header_context, [cmd.AddRow(), cmd.AddRow()])
    ctx = cmd.reduce_all(ctx, [
        cmd.UpdateRow({"row_index": 0, "document_id": 500, "esubmit_file_name": "deed.pdf", "page_count": 3}),
        cmd.AssignDocType(0, deed_doc_type),
        cmd.UpdateRow({"row_index": 1, "document_type": "Trust Deed", "document_type_id": 50, "esubmit_file_name": "td.pdf"}),
    ])
    if upload_child:
        ctx = cmd.reduce(ctx, cmd.UpdateChild({
            "parent_row_index": 0,
            "child_row_index": 0,
            "esubmit_file_name": "deed-a.pdf",
            "page_count": 1,
        }))
    return ctx


class TestAssembleRows:
    """Flattening the row tree"""

    def test_single_typed_parent(self, deed_doc_type):
        """Pending children and untyped parents are not persisted"""
        ctx = cmd.reduce_all(OrderContext(), [cmd.AssignDocType(0, deed_doc_type), cmd.AddRow()])
        records = assemble_rows(ctx.rows)
        assert len(records) == 1
        assert records[0]["processingOrder"] == 1
        assert records[0]["documentTypeID"] == 40
        assert records[0]["parentDocumentID"] == 0

    def test_sequence_continues_across_children(self, header_context, deed_doc_type):
        records = assemble_rows(typed_tree(header_context, deed_doc_type).rows, payload_id=77)
        assert [r["processingOrder"] for r in records] == [1, 2, 3]
        assert [r.get("documentType") for r in records] == ["Grant Deed", "Deed", "Trust Deed"]
        assert all(r["payloadID"] == 77 for r in records)

    def test_child_falls_back_to_parent_document_id(self, header_context, deed_doc_type):
        child = assemble_rows(typed_tree(header_context, deed_doc_type).rows)[1]
        assert child["parentDocumentID"] == 500
        assert child["childRowIndex"] == 0
        assert child["parentRowIndex"] == 0

    def test_empty_tree(self):
        assert assemble_rows(OrderContext().rows) == []

    def test_processing_order_of(self, header_context, deed_doc_type):
        rows = typed_tree(header_context, deed_doc_type).rows
        assert processing_order_of(rows, 0) == 1
        assert processing_order_of(rows, 0, 0) == 2
        assert processing_order_of(rows, 1) == 3
        assert processing_order_of(rows, 2) == 4

    def test_children_of_reset_parent_not_sent(self, header_context, deed_doc_type):
        ctx = cmd.reduce(typed_tree(header_context, deed_doc_type), cmd.ResetRowDocTypes())
        assert assemble_rows(ctx.rows) == []

    def test_children_of_reset_parent_not_counted(self, header_context, deed_doc_type):
        ctx = typed_tree(header_context, deed_doc_type)
        rows = cmd.reduce(ctx, cmd.UpdateRow({"row_index": 0, "document_type": None, "document_type_id": None})).rows
        assert processing_order_of(rows, 1) == 1


class TestSaveBody:
    """Save and submit request body"""

    def test_draft_status_and_head(self, header_context, deed_doc_type):
        ctx = cmd.reduce(typed_tree(header_context, deed_doc_type), cmd.SetPayloadId(77))
        body = electronic_data(ctx, recording_date="2026-03-02", settings=Settings())
        head = body["head"]
        assert head["status"] == "D"
        assert head["payloadID"] == 77
        assert head["shortCode"] == "ACME"
        assert head["customerId"] == 7
        assert head["titleOfficerID"] == 3
        assert head["state"] == 5
        assert head["countyID"] == 11
        assert head["processQueueID"] == 100
        assert head["orderType"] == "Purchase"
        assert head["transType"] == "Not Used"
        assert head["recordingDate"] == "2026-03-02"
        assert len(body["rows"]) == 3

    def test_submit_status(self, header_context, deed_doc_type):
        body = electronic_data(typed_tree(header_context, deed_doc_type), submit=True, settings=Settings())
        assert body["head"]["status"] == "O"

    def test_status_markers_configurable(self, header_context):
        settings = Settings(DRAFT_STATUS="DRAFT", NOT_USED_LABEL="N/A")
        body = electronic_data(header_context, settings=settings)
        assert body["head"]["status"] == "DRAFT"
        assert body["head"]["transType"] == "N/A"


class TestRequestBodies:
    """create/add/update/remove/cancel bodies"""

    def test_create_order_uses_queue_name(self, header_context, deed_doc_type):
        ctx = cmd.reduce_all(header_context, [
            cmd.UpdateRow({"row_index": 0, "order_number": "ORD-1"}),
            cmd.AssignDocType(0, deed_doc_type),
        ])
        record = parent_record(ctx.rows[0], processing_order=1)
        body = create_order_request(ctx, record, recording_date="2026-03-02", settings=Settings())
        assert body["head"]["processQueueID"] == "Standard"
        assert body["head"]["orderNumber"] == "ORD-1"
        assert body["rows"] == [record]
        assert "status" not in body["head"]

    def test_add_docs(self, header_context):
        ctx = cmd.reduce(header_context, cmd.SetPayloadId(77))
        body = add_docs_request(ctx, {"documentType": "Deed"}, settings=Settings())
        assert body["payloadID"] == 77
        assert body["shortCode"] == "ACME"
        doc = body["addDocs"][0]
        assert doc["documentType"] == "Deed"
        assert doc["countyID"] == 11
        assert doc["titleOfficerID"] == 3
        assert doc["transType"] == "Not Used"

    def test_update_doc(self, header_context):
        record = {"documentID": 9, "esubmitFileName": "b.pdf", "pageCount": 2, "documentTypeID": 40}
        body = update_doc_request(header_context, record)
        assert body["documentID"] == 9
        assert body["shortCode"] == "ACME"
        assert body["update"]["esubmitFileName"] == "b.pdf"
        assert body["update"]["parentDocumentID"] == 0

    def test_remove_and_cancel(self, header_context):
        ctx = cmd.reduce(header_context, cmd.SetPayloadId(77))
        assert remove_docs_request(ctx, [9, 10]) == {
            "payloadID": 77,
            "shortCode": "ACME",
            "docs": [{"documentID": 9}, {"documentID": 10}],
        }
        assert cancel_order_request(ctx) == {"payloadID": 77, "shortCode": "ACME"}
