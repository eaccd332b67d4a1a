"""Unit tests for order commands and the reducer."""

import typing
from dataclasses import dataclass

import pytest

from eorder.domain import commands as cmd
from eorder.domain.catalog import DocType, DocTypeHelper
from eorder.domain.context import OrderContext
from eorder.domain.rows import RowTreeError, initial_rows


class TestReducer:
    """Dispatch over the closed command set"""

    def test_every_command_has_a_handler(self):
        assert set(typing.get_args(cmd.OrderCommand)) == set(cmd.HANDLERS)

    def test_unknown_command_rejected(self):
        @dataclass(frozen=True)
        class Bogus:
            pass

        with pytest.raises(TypeError):
            cmd.reduce(OrderContext(), Bogus())

    def test_input_context_unchanged(self):
        ctx = OrderContext()
        cmd.reduce(ctx, cmd.AddRow())
        assert len(ctx.rows) == 1

    def test_replace_rows_rejects_empty_tree(self):
        with pytest.raises(RowTreeError):
            cmd.reduce(OrderContext(), cmd.ReplaceRows(()))


class TestSelectionCascades:
    """Selections clear what depends on them"""

    def test_select_customer(self, header_context, catalog):
        other = catalog.customer.model_copy(update={"short_code": "OTHER"})
        ctx = cmd.reduce(header_context, cmd.SelectCustomer(other))
        assert ctx.selected_customer.short_code == "OTHER"
        assert ctx.short_code == "OTHER"
        assert ctx.catalog is None
        assert ctx.state is None
        assert ctx.county is None
        assert ctx.title_officer is None
        assert ctx.process_queues == ()
        assert ctx.order_type is None

    def test_select_state_clears_county_and_row_types(self, header_context, catalog, deed_doc_type):
        ctx = cmd.reduce(header_context, cmd.AssignDocType(0, deed_doc_type))
        ctx = cmd.reduce(ctx, cmd.SelectState(catalog.find_state(6)))
        assert ctx.state.id == 6
        assert ctx.county is None
        assert ctx.process_queue is None
        assert ctx.process_queues == ()
        assert ctx.cut_off_time is None
        assert ctx.rows[0].document_type_id is None
        assert [c.name for c in ctx.counties] == ["Clark"]

    def test_select_county_derives_queues_and_layout(self, header_context):
        ctx = header_context
        assert ctx.county.name == "Riverside"
        assert [q.queue_name for q in ctx.process_queues] == ["Standard"]
        assert ctx.cut_off_time == "15:00"
        assert ctx.margins.mt == 1
        assert ctx.margins.mr == 0.5
        assert ctx.endorsement_box.height == 2
        assert ctx.endorsement_box.width == 3
        assert ctx.use_margins is True
        assert ctx.use_endorsement_box is True

    def test_select_county_without_layout(self, header_context, catalog):
        ctx = cmd.reduce(header_context, cmd.SelectCounty(catalog.find_county(12)))
        assert ctx.process_queue is None
        assert ctx.process_queues == ()
        assert ctx.use_margins is False
        assert ctx.use_endorsement_box is False

    def test_counties_filtered_by_state(self, header_context):
        assert [c.name for c in header_context.counties] == ["Riverside", "Orange"]

    def test_reset_current_order(self, header_context):
        ctx = cmd.reduce_all(header_context, [cmd.SetPayloadId(55), cmd.AddRow()])
        ctx = cmd.reduce(ctx, cmd.ResetCurrentOrder())
        assert ctx.selected_customer is None
        assert ctx.payload_id is None
        assert ctx.rows == initial_rows()
        assert ctx.doc_types == ()

    @pytest.mark.parametrize(
        "make_command",
        [
            lambda catalog: cmd.SelectCustomer(catalog.customer),
            lambda catalog: cmd.SelectState(catalog.find_state(6)),
            lambda catalog: cmd.ResetCurrentOrder(),
        ],
        ids=["customer", "state", "reset"],
    )
    def test_layout_and_doc_types_cleared_upstream_of_county(self, header_context, catalog, make_command):
        ctx = cmd.reduce(header_context, cmd.SetDocTypes((DocType(id=40, description="Grant Deed"),)))
        assert ctx.use_margins is True

        ctx = cmd.reduce(ctx, make_command(catalog))
        assert ctx.use_margins is False
        assert ctx.use_endorsement_box is False
        assert ctx.doc_types == ()

    def test_county_change_drops_previous_doc_types(self, header_context, catalog):
        ctx = cmd.reduce(header_context, cmd.SetDocTypes((DocType(id=40, description="Grant Deed"),)))
        ctx = cmd.reduce(ctx, cmd.SelectCounty(catalog.find_county(12)))
        assert ctx.doc_types == ()


class TestDocTypeCommands:
    """Document type list and helper caching"""

    def test_pcor_doc_types_dropped(self):
        doc_types = (
            DocType(id=1, description="Deed", is_pcor=0),
            DocType(id=2, description="PCOR", is_pcor=1),
        )
        ctx = cmd.reduce(OrderContext(), cmd.SetDocTypes(doc_types))
        assert [dt.id for dt in ctx.doc_types] == [1]

    def test_set_doc_type_helpers_matches_loose_id(self):
        ctx = cmd.reduce(OrderContext(), cmd.SetDocTypes((DocType(id=1, description="Deed"),)))
        helpers = (DocTypeHelper(id=9, display_name="Deed"),)
        ctx = cmd.reduce(ctx, cmd.SetDocTypeHelpers("1", helpers))
        assert [h.id for h in ctx.doc_types[0].helpers] == [9]

    def test_reset_table_clears_rows_and_doc_types(self):
        ctx = cmd.reduce_all(OrderContext(), [
            cmd.SetDocTypes((DocType(id=1, description="Deed"),)),
            cmd.AddRow(),
        ])
        ctx = cmd.reduce(ctx, cmd.ResetTable())
        assert ctx.rows == initial_rows()
        assert ctx.doc_types == ()
