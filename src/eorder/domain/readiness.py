"""Readiness checks for editing and submitting an electronic order.

All checks are pure functions of an ``OrderContext``.
"""

from typing import Any, Dict, List

from .context import OrderContext


def are_required_fields_set(ctx: OrderContext) -> bool:
    """Customer, title officer, state and county are all selected."""
    return all((
        ctx.selected_customer is not None,
        ctx.title_officer is not None,
        ctx.state is not None,
        ctx.county is not None,
    ))


def are_optional_fields_set(ctx: OrderContext) -> bool:
    """Each optional selection is made exactly when the context requires it.

    Process queue, order type and transaction type are compared pairwise:
    selecting an option the context does not use fails just like leaving a
    required one empty.
    """
    required = (ctx.has_process_queue, ctx.has_order_types, ctx.has_trans_types)
    selected = (
        ctx.process_queue is not None,
        ctx.order_type is not None,
        ctx.trans_type is not None,
    )
    return required == selected


def is_ready_for_table(ctx: OrderContext) -> bool:
    """Rows may be edited once the order exists, or once the header is complete."""
    if ctx.is_order_created:
        return True
    return are_required_fields_set(ctx) and are_optional_fields_set(ctx)


def are_parent_rows_ready(ctx: OrderContext) -> bool:
    """Every typed parent row has a file and every file has a type.

    Always False with fewer than two rows: a fresh order is never ready.
    """
    if len(ctx.rows) < 2:
        return False
    typed = sum(1 for row in ctx.rows if row.document_type_id)
    with_file = sum(1 for row in ctx.rows if row.esubmit_file_name)
    return typed == with_file


def are_child_rows_ready(ctx: OrderContext) -> bool:
    """Rows with ``require_nr == 2`` must have every child slot uploaded with a page count."""
    requiring = 0
    satisfied = 0
    if len(ctx.rows) > 1:
        for row in ctx.rows:
            if row.require_nr == 2:
                requiring += 1
                if all(child.is_complete for child in row.child_rows):
                    satisfied += 1
    return requiring == satisfied


def is_ready_to_submit(ctx: OrderContext) -> bool:
    return are_parent_rows_ready(ctx) and are_child_rows_ready(ctx)


def readiness_report(ctx: OrderContext) -> Dict[str, Any]:
    """Evaluate every check and list the reasons submission is blocked.

    Returns:
        Dict with:
            - ready_for_table (bool)
            - ready_to_submit (bool)
            - blocking_reasons (List[str])
    """
    blocking_reasons: List[str] = []

    if not are_required_fields_set(ctx):
        blocking_reasons.append("required selections missing")
    if not are_optional_fields_set(ctx):
        blocking_reasons.append("optional selections do not match customer/county")

    if len(ctx.rows) < 2:
        blocking_reasons.append("no documents added")
    else:
        if not are_parent_rows_ready(ctx):
            blocking_reasons.append("typed documents without uploaded file")
        for row in ctx.rows:
            if row.require_nr == 2 and not all(child.is_complete for child in row.child_rows):
                blocking_reasons.append(f"Row {row.order_id}: sub-documents incomplete")

    return {
        "ready_for_table": is_ready_for_table(ctx),
        "ready_to_submit": is_ready_to_submit(ctx),
        "blocking_reasons": blocking_reasons,
    }
