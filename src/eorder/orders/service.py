"""Electronic order service - actions against the backend.

Every backend call is isolated: a failure is logged, counted and reported
through a ``ServiceCallResult``; it never raises to the caller and never
rolls back state that was committed before the call.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from ..config import Settings, get_settings
from ..domain import commands as cmd
from ..domain import payload
from ..domain.catalog import CatalogSnapshot, County, Customer, DocType, DocTypeHelper, StateRecord
from ..domain.context import OrderContext
from ..domain.ports import ElectronicOrderServicePort, ServiceError, ServiceInvalidResponseError
from ..domain.readiness import is_ready_for_table, is_ready_to_submit
from ..domain.reconciler import ReconcileError, reconcile_existing_order
from ..domain.schemas import OrderHeader, PersistedRecord
from ..observability.correlation import operation_scope
from ..observability.metrics import service_call_latency_seconds, service_calls_total

logger = logging.getLogger(__name__)


@dataclass
class ServiceCallResult:
    """Outcome of one service action.

    Attributes:
        operation: Action name (also the metrics label)
        success: Whether the backend call and its local commit succeeded
        error_message: Human-readable error message if success=False
        data: Decoded backend response (or action-specific details)
    """
    operation: str
    success: bool
    error_message: Optional[str] = None
    data: Any = None


def _response_value(data: Any, *path: Any) -> Any:
    """Walk ``path`` into a decoded response, raising ServiceInvalidResponseError if absent."""
    current = data
    for key in path:
        try:
            current = current[key]
        except (KeyError, IndexError, TypeError) as e:
            raise ServiceInvalidResponseError(f"Response missing {'.'.join(map(str, path))}") from e
    return current


class ElectronicOrderService:
    """Owns one ``OrderContext`` and applies backend-backed actions to it."""

    def __init__(
        self,
        port: ElectronicOrderServicePort,
        context: Optional[OrderContext] = None,
        settings: Optional[Settings] = None,
    ):
        self.port = port
        self.context = context or OrderContext()
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def dispatch(self, command: cmd.OrderCommand) -> OrderContext:
        """Apply one command to the owned context and return the new context."""
        self.context = cmd.reduce(self.context, command)
        return self.context

    def _instrumented(self, operation: str, call: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        """Wrap a port method so it records metrics but still raises."""

        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await call(*args, **kwargs)
            except ServiceError:
                service_calls_total.labels(operation=operation, status="error").inc()
                raise
            finally:
                service_call_latency_seconds.labels(operation=operation).observe(time.perf_counter() - start)
            service_calls_total.labels(operation=operation, status="success").inc()
            return result

        return wrapper

    async def _call(
        self,
        operation: str,
        call: Callable[[], Awaitable[Any]],
    ) -> ServiceCallResult:
        """Run one backend call with failure isolation.

        ``call`` may also interpret the response; a malformed response counts
        as a failed call.
        """
        start = time.perf_counter()
        try:
            data = await call()
        except (ServiceError, ValidationError) as e:
            service_calls_total.labels(operation=operation, status="error").inc()
            logger.error(
                f"{operation} failed: {e}",
                exc_info=True,
                extra={"operation": operation, "payload_id": self.context.payload_id},
            )
            return ServiceCallResult(operation=operation, success=False, error_message=str(e))
        finally:
            service_call_latency_seconds.labels(operation=operation).observe(time.perf_counter() - start)

        service_calls_total.labels(operation=operation, status="success").inc()
        return ServiceCallResult(operation=operation, success=True, data=data)

    # ------------------------------------------------------------------
    # Catalog lookups
    # ------------------------------------------------------------------

    async def fetch_customers(self) -> ServiceCallResult:
        async def call():
            data = await self.port.get_customers()
            customers = tuple(Customer.model_validate(item) for item in data)
            self.dispatch(cmd.SetCustomersList(customers))
            return data

        return await self._call("fetch_customers", call)

    async def fetch_customer_presets(self, short_code: str) -> ServiceCallResult:
        self.dispatch(cmd.SetPresetsLoading(True))

        async def call():
            data = await self.port.get_customer_presets(short_code)
            self.dispatch(cmd.SetCatalog(CatalogSnapshot.model_validate(data)))
            return data

        try:
            return await self._call("fetch_customer_presets", call)
        finally:
            self.dispatch(cmd.SetPresetsLoading(False))

    async def fetch_doc_types(self) -> ServiceCallResult:
        county = self.context.county
        if county is None:
            return ServiceCallResult(operation="fetch_doc_types", success=False, error_message="No county selected")

        async def call():
            data = await self.port.get_doc_types(county.id)
            self.dispatch(cmd.SetDocTypes(tuple(DocType.model_validate(item) for item in data)))
            return data

        return await self._call("fetch_doc_types", call)

    async def fetch_doc_type_helpers(self, row_index: int, document_type_id: Any) -> ServiceCallResult:
        async def call():
            data = await self.port.get_doc_type_helpers(document_type_id)
            helpers = tuple(DocTypeHelper.model_validate(item) for item in data)
            self.dispatch(cmd.SetDocTypeHelpers(document_type_id, helpers))
            self.dispatch(cmd.UpdateRow({
                "row_index": row_index,
                "document_type_id": document_type_id,
                "helpers": helpers,
            }))
            return data

        return await self._call("fetch_doc_type_helpers", call)

    async def select_row_doc_type(self, row_index: int, doc_type: DocType) -> ServiceCallResult:
        """Assign a doc type to a row, fetching its helpers first if not cached.

        The row's child slots are rebuilt from the helpers. If the helper
        fetch fails the type is still assigned, with no child slots.
        """
        if doc_type.helpers is not None:
            self.dispatch(cmd.AssignDocType(row_index, doc_type))
            return ServiceCallResult(operation="select_row_doc_type", success=True)

        async def call():
            data = await self.port.get_doc_type_helpers(doc_type.id)
            helpers = [DocTypeHelper.model_validate(item) for item in data]
            self.dispatch(cmd.SetDocTypeHelpers(doc_type.id, tuple(helpers)))
            return helpers

        result = await self._call("fetch_doc_type_helpers", call)
        resolved = doc_type.model_copy(update={"helpers": result.data}) if result.success else doc_type
        self.dispatch(cmd.AssignDocType(row_index, resolved))
        return result

    # ------------------------------------------------------------------
    # Selections
    # ------------------------------------------------------------------

    async def select_customer(self, customer: Customer) -> ServiceCallResult:
        self.dispatch(cmd.SelectCustomer(customer))
        return await self.fetch_customer_presets(customer.short_code)

    def select_state(self, state: StateRecord) -> OrderContext:
        return self.dispatch(cmd.SelectState(state))

    async def select_county(self, county: County) -> ServiceCallResult:
        self.dispatch(cmd.SelectCounty(county))
        return await self.fetch_doc_types()

    def reset_table(self) -> OrderContext:
        return self.dispatch(cmd.ResetTable())

    def reset_current_order(self) -> OrderContext:
        return self.dispatch(cmd.ResetCurrentOrder())

    # ------------------------------------------------------------------
    # Document persistence
    # ------------------------------------------------------------------

    async def init_order_data(self) -> ServiceCallResult:
        """Create the order on the backend from the first row."""
        row = self.context.rows[0]
        record = payload.parent_record(row, processing_order=1)
        body = payload.create_order_request(self.context, record, settings=self.settings)

        async def call():
            data = await self.port.create_order(body)
            payload_id = _response_value(data, "head", "payloadID")
            document_id = _response_value(data, "rows", 0, "documentID")
            self.dispatch(cmd.SetPayloadId(payload_id))
            self.dispatch(cmd.UpdateRow({"row_index": 0, "document_id": document_id}))
            logger.info(f"Order created with payload {payload_id}", extra={"payload_id": payload_id})
            return data

        return await self._call("create_order", call)

    async def add_row_order_data(self, row_index: int) -> ServiceCallResult:
        """Persist a new parent row and mark it touched."""
        row = self.context.rows[row_index]
        processing_order = payload.processing_order_of(self.context.rows, row_index)
        record = payload.parent_record(row, processing_order, self.context.payload_id)
        body = payload.add_docs_request(self.context, record, settings=self.settings)

        async def call():
            data = await self.port.add_doc(body)
            document_id = _response_value(data, "docsAdded", 0, "documentID")
            self.dispatch(cmd.UpdateRow({
                "row_index": row_index,
                "document_id": document_id,
                "processing_order": processing_order,
                "touched": True,
            }))
            return data

        return await self._call("add_doc", call)

    async def add_sub_row_data(self, parent_row_index: int, child_row_index: int) -> ServiceCallResult:
        """Persist an uploaded child slot under its parent document."""
        parent = self.context.rows[parent_row_index]
        child = self.context.child_row(parent_row_index, child_row_index)
        processing_order = payload.processing_order_of(self.context.rows, parent_row_index, child_row_index)
        record = payload.child_record(child, processing_order, self.context.payload_id, parent.document_id)
        body = payload.add_docs_request(self.context, record, settings=self.settings)

        async def call():
            data = await self.port.add_doc(body)
            document_id = _response_value(data, "docsAdded", 0, "documentID")
            self.dispatch(cmd.UpdateChild({
                "parent_row_index": parent_row_index,
                "child_row_index": child_row_index,
                "document_id": document_id,
                "parent_document_id": parent.document_id,
            }))
            return data

        return await self._call("add_doc", call)

    async def update_row_order_data(self, changes: Mapping[str, Any]) -> ServiceCallResult:
        """Send a row or child update, then merge it locally on success.

        ``changes`` addresses a child when it carries ``child_row_index``
        (plus ``parent_row_index``), otherwise a parent via ``row_index``.
        """
        is_child = "child_row_index" in changes
        command = cmd.UpdateChild(changes) if is_child else cmd.UpdateRow(changes)
        preview = cmd.reduce(self.context, command)

        if is_child:
            parent = preview.rows[changes["parent_row_index"]]
            child = parent.child_rows[changes["child_row_index"]]
            processing_order = payload.processing_order_of(preview.rows, changes["parent_row_index"], changes["child_row_index"])
            record = payload.child_record(child, processing_order, preview.payload_id, parent.document_id)
        else:
            row = preview.rows[changes["row_index"]]
            record = payload.parent_record(row, row.processing_order or row.order_id, preview.payload_id)
        body = payload.update_doc_request(preview, record)

        async def call():
            data = await self.port.update_doc(body)
            self.dispatch(command)
            return data

        return await self._call("update_doc", call)

    async def update_row_removal(self, index: int) -> ServiceCallResult:
        """Remove a row locally, then delete its document on the backend.

        The local removal stands even if the backend call fails.
        """
        document_id = self.context.rows[index].document_id
        body = payload.remove_docs_request(self.context, [document_id])

        self.dispatch(cmd.RemoveRow(index))
        for shifted in range(index, len(self.context.rows)):
            self.dispatch(cmd.ReindexChildParents(shifted))

        if document_id is None:
            return ServiceCallResult(operation="remove_doc", success=True)
        return await self._call("remove_doc", lambda: self.port.remove_doc(body))

    async def delete_doc_from_sub_row(self, parent_row_index: int, child_row_index: int) -> ServiceCallResult:
        """Clear an uploaded child slot back to pending and delete its document."""
        document_id = self.context.sub_row_doc_id(parent_row_index, child_row_index)
        body = payload.remove_docs_request(self.context, [document_id])

        self.dispatch(cmd.UpdateChild({
            "parent_row_index": parent_row_index,
            "child_row_index": child_row_index,
            "document_id": None,
            "esubmit_file_name": None,
            "page_count": None,
        }))
        if document_id is None:
            return ServiceCallResult(operation="remove_doc", success=True)
        return await self._call("remove_doc", lambda: self.port.remove_doc(body))

    async def cancel_order(self) -> ServiceCallResult:
        body = payload.cancel_order_request(self.context)
        return await self._call("cancel_order", lambda: self.port.cancel_order(body))

    async def save_order(self, submit: bool = False) -> ServiceCallResult:
        """Save the order as a draft, or submit it when ``submit`` is True.

        Submission is refused locally when the order is not ready to submit.
        """
        if submit and not is_ready_to_submit(self.context):
            return ServiceCallResult(
                operation="submit_order",
                success=False,
                error_message="Order is not ready to submit",
            )
        body = payload.electronic_data(self.context, submit=submit, settings=self.settings)
        operation = "submit_order" if submit else "save_order"
        return await self._call(operation, lambda: self.port.save_order(body))

    # ------------------------------------------------------------------
    # Existing orders
    # ------------------------------------------------------------------

    async def populate_existing_order(
        self,
        catalog: Mapping[str, Any],
        header: Mapping[str, Any],
        records: List[Mapping[str, Any]],
    ) -> ServiceCallResult:
        """Open a saved order: rebuild the row tree and commit it once.

        Args:
            catalog: Customer presets in effect when the order was saved
            header: Order header (payloadID, orderNumber, stateId, countyID...)
            records: Flat list of persisted document records

        Returns:
            ServiceCallResult; ``data["helper_failures"]`` lists rows whose
            helper metadata could not be fetched (the tree is committed anyway)
        """
        with operation_scope():
            return await self._populate_existing_order(catalog, header, records)

    async def _populate_existing_order(
        self,
        catalog: Mapping[str, Any],
        header: Mapping[str, Any],
        records: List[Mapping[str, Any]],
    ) -> ServiceCallResult:
        operation = "populate_existing_order"

        try:
            snapshot = CatalogSnapshot.model_validate(catalog)
            order_header = OrderHeader.model_validate(header)
            persisted = [PersistedRecord.model_validate(rec) for rec in records]
        except ValidationError as e:
            logger.error(f"{operation}: saved order could not be parsed: {e}", exc_info=True)
            return ServiceCallResult(operation=operation, success=False, error_message=str(e))

        try:
            result = await reconcile_existing_order(
                self.context,
                snapshot,
                order_header,
                persisted,
                fetch_helpers=self._instrumented("fetch_doc_type_helpers", self.port.get_doc_type_helpers),
                fetch_doc_types=self._instrumented("fetch_doc_types", self.port.get_doc_types),
            )
        except ReconcileError as e:
            logger.error(f"{operation} failed: {e}", exc_info=True)
            return ServiceCallResult(operation=operation, success=False, error_message=str(e))

        self.context = result.context
        logger.info(
            f"Reopened order with {len(persisted)} records",
            extra={"operation": operation, "payload_id": order_header.payload_id},
        )

        details: Dict[str, Any] = {
            "helper_failures": result.helper_failures,
            "doc_types_failed": result.doc_types_failed,
        }
        problems = []
        if result.helper_failures:
            problems.append(f"helper metadata missing for rows {result.helper_failures}")
        if result.doc_types_failed:
            problems.append("document type list unavailable")
        if problems:
            return ServiceCallResult(
                operation=operation,
                success=False,
                error_message="; ".join(problems),
                data=details,
            )
        return ServiceCallResult(operation=operation, success=True, data=details)

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    @property
    def is_ready_for_table(self) -> bool:
        return is_ready_for_table(self.context)

    @property
    def is_ready_to_submit(self) -> bool:
        return is_ready_to_submit(self.context)
