"""Unit tests for order readiness checks."""

from eorder.domain import commands as cmd
from eorder.domain.context import OrderContext
from eorder.domain.readiness import (
    are_child_rows_ready,
    are_optional_fields_set,
    are_parent_rows_ready,
    are_required_fields_set,
    is_ready_for_table,
    is_ready_to_submit,
    readiness_report,
)


def with_rows(ctx, *changes):
    """Grow the table to len(changes) rows and merge each change into its row."""
    for _ in range(len(changes) - len(ctx.rows)):
        ctx = cmd.reduce(ctx, cmd.AddRow())
    for i, change in enumerate(changes):
        ctx = cmd.reduce(ctx, cmd.UpdateRow({"row_index": i, **change}))
    return ctx


class TestHeaderReadiness:
    """Required and optional selections"""

    def test_complete_header(self, header_context):
        assert are_required_fields_set(header_context) is True
        assert are_optional_fields_set(header_context) is True
        assert is_ready_for_table(header_context) is True

    def test_required_fields_unset_without_order(self):
        assert is_ready_for_table(OrderContext()) is False

    def test_order_identifier_bypasses_field_checks(self):
        ctx = cmd.reduce(OrderContext(), cmd.SetPayloadId(1234))
        assert are_required_fields_set(ctx) is False
        assert is_ready_for_table(ctx) is True

    def test_missing_required_option(self, header_context):
        ctx = cmd.reduce(header_context, cmd.SelectOrderType(None))
        assert are_optional_fields_set(ctx) is False
        assert is_ready_for_table(ctx) is False

    def test_unsupported_option_selected(self, header_context, catalog):
        """Customer does not use transaction types, so selecting one fails"""
        ctx = cmd.reduce(header_context, cmd.SelectTransType(catalog.trans_types[0]))
        assert are_optional_fields_set(ctx) is False

    def test_county_without_queues_must_have_no_queue(self, header_context, catalog):
        ctx = cmd.reduce(header_context, cmd.SelectCounty(catalog.find_county(12)))
        assert ctx.has_process_queue is False
        assert are_optional_fields_set(ctx) is True


class TestParentRows:
    """Typed rows and uploaded files must pair up"""

    def test_single_row_never_ready(self):
        ctx = with_rows(OrderContext(), {"document_type_id": 40, "esubmit_file_name": "a.pdf"})
        assert are_parent_rows_ready(ctx) is False

    def test_typed_row_with_file_and_placeholder(self):
        ctx = with_rows(OrderContext(), {"document_type_id": 40, "esubmit_file_name": "a.pdf"}, {})
        assert are_parent_rows_ready(ctx) is True

    def test_typed_row_without_file(self):
        ctx = with_rows(OrderContext(), {"document_type_id": 40}, {})
        assert are_parent_rows_ready(ctx) is False

    def test_file_without_type(self):
        ctx = with_rows(OrderContext(), {"esubmit_file_name": "a.pdf"}, {})
        assert are_parent_rows_ready(ctx) is False


class TestChildRows:
    """Rows requiring NR need every sub-document uploaded"""

    def _ctx(self, deed_doc_type):
        ctx = with_rows(OrderContext(), {"esubmit_file_name": "a.pdf"}, {})
        return cmd.reduce(ctx, cmd.AssignDocType(0, deed_doc_type))

    def test_pending_slot_blocks(self, deed_doc_type):
        ctx = self._ctx(deed_doc_type)
        assert are_child_rows_ready(ctx) is False
        assert is_ready_to_submit(ctx) is False

    def test_uploaded_slot_with_pages(self, deed_doc_type):
        ctx = cmd.reduce(self._ctx(deed_doc_type), cmd.UpdateChild({
            "parent_row_index": 0,
            "child_row_index": 0,
            "esubmit_file_name": "deed-a.pdf",
            "page_count": 2,
        }))
        assert are_child_rows_ready(ctx) is True
        assert is_ready_to_submit(ctx) is True

    def test_zero_page_count_blocks(self, deed_doc_type):
        ctx = cmd.reduce(self._ctx(deed_doc_type), cmd.UpdateChild({
            "parent_row_index": 0,
            "child_row_index": 0,
            "esubmit_file_name": "deed-a.pdf",
            "page_count": 0,
        }))
        assert are_child_rows_ready(ctx) is False

    def test_rows_not_requiring_nr_ignored(self, deed_doc_type):
        doc_type = deed_doc_type.model_copy(update={"require_nr": 1})
        ctx = with_rows(OrderContext(), {"esubmit_file_name": "a.pdf"}, {})
        ctx = cmd.reduce(ctx, cmd.AssignDocType(0, doc_type))
        assert are_child_rows_ready(ctx) is True


class TestReadinessReport:
    """Blocking reasons for display"""

    def test_fresh_order(self):
        report = readiness_report(OrderContext())
        assert report["ready_for_table"] is False
        assert report["ready_to_submit"] is False
        assert "no documents added" in report["blocking_reasons"]
        assert "required selections missing" in report["blocking_reasons"]

    def test_incomplete_sub_documents(self, header_context, deed_doc_type):
        ctx = with_rows(header_context, {"esubmit_file_name": "a.pdf"}, {})
        ctx = cmd.reduce(ctx, cmd.AssignDocType(0, deed_doc_type))
        report = readiness_report(ctx)
        assert report["ready_for_table"] is True
        assert report["blocking_reasons"] == ["Row 1: sub-documents incomplete"]

    def test_reset_parent_no_longer_requires_sub_documents(self, header_context, deed_doc_type):
        ctx = with_rows(header_context, {"esubmit_file_name": "a.pdf"}, {})
        ctx = cmd.reduce_all(ctx, [cmd.AssignDocType(0, deed_doc_type), cmd.ResetRowDocTypes()])
        report = readiness_report(ctx)
        assert not any("sub-documents" in reason for reason in report["blocking_reasons"])
        assert are_child_rows_ready(ctx) is True
