"""OrderContext: the explicit state value every order operation works on."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .catalog import (
    CatalogSnapshot,
    County,
    Customer,
    DocType,
    EndorsementBox,
    Margins,
    OrderType,
    ProcessQueue,
    RecordId,
    StateRecord,
    TitleOfficer,
    TransType,
    same_id,
)
from .rows import ChildRow, OrderRow, Rows, initial_rows


@dataclass(frozen=True)
class OrderContext:
    """Selections, lookup lists and the row tree of one electronic order.

    ``catalog`` holds the presets fetched for the selected customer;
    the lookup properties below derive from it and from the selections.
    """

    is_existing_order: bool = False
    customers: Tuple[Customer, ...] = ()
    catalog: Optional[CatalogSnapshot] = None
    presets_loading: bool = False
    process_queues: Tuple[ProcessQueue, ...] = ()
    payload_id: Optional[RecordId] = None

    selected_customer: Optional[Customer] = None
    short_code: Optional[str] = None
    title_officer: Optional[TitleOfficer] = None
    state: Optional[StateRecord] = None
    county: Optional[County] = None
    trans_type: Optional[TransType] = None
    order_type: Optional[OrderType] = None
    process_queue: Optional[ProcessQueue] = None
    cut_off_time: Optional[str] = None
    margins: Margins = Margins()
    endorsement_box: EndorsementBox = EndorsementBox()

    doc_types: Tuple[DocType, ...] = ()
    rows: Rows = initial_rows()

    # ------------------------------------------------------------------
    # Lookup lists
    # ------------------------------------------------------------------

    @property
    def title_officers(self) -> Tuple[TitleOfficer, ...]:
        return tuple(self.catalog.title_officers) if self.catalog else ()

    @property
    def states(self) -> Tuple[StateRecord, ...]:
        return tuple(self.catalog.states) if self.catalog else ()

    @property
    def counties(self) -> Tuple[County, ...]:
        """Counties of the selected state only."""
        if self.state is None or self.catalog is None:
            return ()
        return tuple(county for county in self.catalog.counties if same_id(county.state_id, self.state.id))

    @property
    def order_types(self) -> Tuple[OrderType, ...]:
        return tuple(self.catalog.order_types) if self.catalog else ()

    @property
    def trans_types(self) -> Tuple[TransType, ...]:
        return tuple(self.catalog.trans_types) if self.catalog else ()

    @property
    def county_record(self) -> Optional[County]:
        """The catalog entry for the selected county."""
        if self.county is None or self.catalog is None:
            return None
        return self.catalog.find_county(self.county.id)

    @property
    def county_margins(self) -> str:
        county = self.county_record
        return (county.margins or "") if county else ""

    @property
    def county_endorsement_box(self) -> str:
        county = self.county_record
        return (county.endorsement_area or "") if county else ""

    # ------------------------------------------------------------------
    # Context flags
    # ------------------------------------------------------------------

    @property
    def has_process_queue(self) -> bool:
        return len(self.process_queues) > 0

    @property
    def has_order_types(self) -> bool:
        if self.selected_customer is None:
            return False
        return self.selected_customer.uses_order_type != 0

    @property
    def has_trans_types(self) -> bool:
        if self.selected_customer is None:
            return False
        return self.selected_customer.uses_trans_type != 0

    @property
    def is_order_created(self) -> bool:
        return self.payload_id is not None

    @property
    def is_ready_to_save(self) -> bool:
        return self.payload_id is not None and str(self.payload_id) != ""

    @property
    def valid_rows(self) -> int:
        """Number of rows persisted on the backend."""
        return sum(1 for row in self.rows if row.document_id is not None)

    @property
    def use_margins(self) -> bool:
        return self.margins.is_set()

    @property
    def use_endorsement_box(self) -> bool:
        return self.endorsement_box.is_set()

    # ------------------------------------------------------------------
    # Row lookups
    # ------------------------------------------------------------------

    def row(self, index: int) -> OrderRow:
        return self.rows[index]

    def child_rows(self, parent_row_index: int) -> Tuple[ChildRow, ...]:
        return self.rows[parent_row_index].child_rows

    def child_row(self, parent_row_index: int, child_row_index: int) -> ChildRow:
        return self.rows[parent_row_index].child_rows[child_row_index]

    def parent_row_doc_id(self, parent_row_index: int) -> Optional[RecordId]:
        return self.rows[parent_row_index].document_id

    def sub_row_doc_id(self, parent_row_index: int, child_row_index: int) -> Optional[RecordId]:
        return self.child_row(parent_row_index, child_row_index).document_id

    def is_sub_row_complete(self, parent_row_index: int, child_row_index: int) -> bool:
        return self.child_row(parent_row_index, child_row_index).is_complete

    def page_count_and_file(self, parent_row_index: int, child_row_index: int) -> Dict[str, Any]:
        child = self.child_row(parent_row_index, child_row_index)
        return {"esubmit_file_name": child.esubmit_file_name, "page_count": child.page_count}

    @property
    def is_last_row_persisted(self) -> bool:
        return bool(self.rows[-1].document_id)

    def esubmit_doc_elements(self, parent_row_index: int) -> Dict[str, str]:
        """Form values decoded from the row's persisted blob, or empty."""
        return dict(self.rows[parent_row_index].existing_form_data or {})
