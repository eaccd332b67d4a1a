"""Catalog records consumed from the backend (customers, presets, doc types).

Records are parsed once at ingestion so the rest of the core sees a single
canonical shape. The backend's state records are keyed inconsistently
(``id`` on some endpoints, ``stateID`` on others); ``StateRecord``
normalizes both onto ``id``.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

RecordId = Union[int, str]


def same_id(left: Any, right: Any) -> bool:
    """Compare backend identifiers that may arrive as int or numeric string."""
    if left is None or right is None:
        return False
    return str(left) == str(right)


class CatalogRecord(BaseModel):
    """Base for backend records; unknown fields are kept as-is."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)


class Customer(CatalogRecord):
    id: RecordId
    short_code: str = Field(alias="shortCode")
    name: Optional[str] = None
    uses_order_type: int = Field(0, alias="usesOrderType")
    uses_trans_type: int = Field(0, alias="usesTransType")


class TitleOfficer(CatalogRecord):
    id: RecordId
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class StateRecord(CatalogRecord):
    """A jurisdiction state; ``id`` falls back to the backend's ``stateID``."""

    id: RecordId
    name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_identifier(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("id") is None and "stateID" in data:
            data = {**data, "id": data["stateID"]}
        return data


class ProcessQueue(CatalogRecord):
    entity_id: RecordId = Field(alias="entityID")
    queue_name: Optional[str] = Field(None, alias="queuename")
    ui_visible: str = Field("N", alias="uiVisible")


class County(CatalogRecord):
    id: RecordId
    state_id: RecordId = Field(alias="stateId")
    name: Optional[str] = None
    margins: Optional[str] = None
    endorsement_area: Optional[str] = Field(None, alias="endorsementArea")
    process_queues: List[ProcessQueue] = Field(default_factory=list)
    cut_off_time: Optional[str] = Field(None, alias="certnaCutOffTime")

    @model_validator(mode="before")
    @classmethod
    def tolerate_null_queues(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("process_queues") is None:
            data = {**data, "process_queues": []}
        return data

    @property
    def visible_process_queues(self) -> List[ProcessQueue]:
        return [queue for queue in self.process_queues if queue.ui_visible == "Y"]


class OrderType(CatalogRecord):
    description: str


class TransType(CatalogRecord):
    description: str


class DocTypeHelper(CatalogRecord):
    """A sub-document type declared by a parent document type."""

    id: RecordId
    display_name: str = Field(alias="DisplayName")


class DocType(CatalogRecord):
    id: RecordId
    description: Optional[str] = None
    is_pcor: int = Field(0, alias="isPcor")
    require_nr: int = Field(0, alias="requireNR")
    helpers: Optional[List[DocTypeHelper]] = None


class CatalogSnapshot(CatalogRecord):
    """Customer presets: every lookup list in effect for one customer."""

    customer: Optional[Customer] = None
    states: List[StateRecord] = Field(default_factory=list)
    counties: List[County] = Field(default_factory=list)
    order_types: List[OrderType] = Field(default_factory=list, alias="orderTypes")
    trans_types: List[TransType] = Field(default_factory=list, alias="transTypes")
    title_officers: List[TitleOfficer] = Field(default_factory=list, alias="titleOfficers")

    def find_state(self, state_id: Any) -> Optional[StateRecord]:
        """Match on ``id`` first, then on a raw ``stateID`` the record may still carry."""
        found = next((state for state in self.states if same_id(state.id, state_id)), None)
        if found is None:
            found = next(
                (state for state in self.states if same_id((state.model_extra or {}).get("stateID"), state_id)),
                None,
            )
        return found

    def find_county(self, county_id: Any) -> Optional[County]:
        return next((county for county in self.counties if same_id(county.id, county_id)), None)

    def find_title_officer(self, officer_id: Any) -> Optional[TitleOfficer]:
        return next((officer for officer in self.title_officers if same_id(officer.id, officer_id)), None)

    def find_order_type(self, description: Optional[str]) -> Optional[OrderType]:
        return next((item for item in self.order_types if item.description == description), None)

    def find_trans_type(self, description: Optional[str]) -> Optional[TransType]:
        return next((item for item in self.trans_types if item.description == description), None)


# ============================================================================
# County page layout
# ============================================================================

@dataclass(frozen=True)
class Margins:
    """Page margins: top, right, bottom, left."""
    mt: Optional[float] = None
    mr: Optional[float] = None
    mb: Optional[float] = None
    ml: Optional[float] = None

    def is_set(self) -> bool:
        return any((self.mt, self.mr, self.mb, self.ml))


@dataclass(frozen=True)
class EndorsementBox:
    width: Optional[float] = None
    height: Optional[float] = None

    def is_set(self) -> bool:
        return any((self.width, self.height))


def _to_number(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return 0.0
    try:
        return float(raw)
    except ValueError:
        return None


def parse_margins(text: Optional[str]) -> Margins:
    """Parse ``"top|right|bottom|left"``; missing or bad parts become None."""
    parts = (text or "").split("|")[:4]
    parts += [None] * (4 - len(parts))
    mt, mr, mb, ml = (_to_number(part) for part in parts)
    return Margins(mt=mt, mr=mr, mb=mb, ml=ml)


def parse_endorsement_area(text: Optional[str]) -> EndorsementBox:
    """Parse ``"height|width"``."""
    parts = (text or "").split("|")[:2]
    parts += [None] * (2 - len(parts))
    height, width = (_to_number(part) for part in parts)
    return EndorsementBox(width=width, height=height)
