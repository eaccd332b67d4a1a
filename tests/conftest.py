"""Shared fixtures for electronic order tests.

Provides:
- catalog_data / catalog: customer presets in the backend's raw shape and parsed
- customer: the preset's customer record
- header_context: an OrderContext with every header selection made
- deed_doc_type: a document type declaring one "Deed" helper
- fake_port: an AsyncMock standing in for the backend service port
"""

from unittest.mock import AsyncMock

import pytest

from eorder.config import get_settings
from eorder.domain import commands as cmd
from eorder.domain.catalog import CatalogSnapshot, Customer, DocType
from eorder.domain.context import OrderContext
from eorder.domain.ports import ElectronicOrderServicePort


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def catalog_data():
    return {
        "customer": {
            "id": 7,
            "shortCode": "ACME",
            "name": "Acme Title",
            "usesOrderType": 1,
            "usesTransType": 0,
        },
        # One state keyed by stateID, the other by id
        "states": [
            {"stateID": 5, "name": "California"},
            {"id": 6, "name": "Nevada"},
        ],
        "counties": [
            {
                "id": 11,
                "stateId": 5,
                "name": "Riverside",
                "margins": "1|0.5|1|0.5",
                "endorsementArea": "2|3",
                "certnaCutOffTime": "15:00",
                "process_queues": [
                    {"entityID": 100, "queuename": "Standard", "uiVisible": "Y"},
                    {"entityID": 101, "queuename": "Internal", "uiVisible": "N"},
                ],
            },
            {"id": 12, "stateId": 5, "name": "Orange", "process_queues": None},
            {"id": 21, "stateId": 6, "name": "Clark"},
        ],
        "orderTypes": [{"description": "Purchase"}, {"description": "Refinance"}],
        "transTypes": [{"description": "Sale"}],
        "titleOfficers": [{"id": 3, "firstName": "Pat", "lastName": "Lee"}],
    }


@pytest.fixture
def catalog(catalog_data) -> CatalogSnapshot:
    return CatalogSnapshot.model_validate(catalog_data)


@pytest.fixture
def customer(catalog) -> Customer:
    return catalog.customer


@pytest.fixture
def header_context(catalog, customer) -> OrderContext:
    """Customer, officer, state, county, queue and order type all selected."""
    ctx = cmd.reduce_all(OrderContext(customers=(customer,)), [
        cmd.SelectCustomer(customer),
        cmd.SetCatalog(catalog),
        cmd.SelectTitleOfficer(catalog.title_officers[0]),
        cmd.SelectState(catalog.find_state(5)),
        cmd.SelectCounty(catalog.find_county(11)),
    ])
    return cmd.reduce_all(ctx, [
        cmd.SelectProcessQueue(ctx.process_queues[0]),
        cmd.SelectOrderType(catalog.order_types[0]),
    ])


@pytest.fixture
def deed_doc_type() -> DocType:
    return DocType.model_validate({
        "id": 40,
        "description": "Grant Deed",
        "isPcor": 0,
        "requireNR": 2,
        "helpers": [{"id": 41, "DisplayName": "Deed"}],
    })


@pytest.fixture
def fake_port():
    return AsyncMock(spec=ElectronicOrderServicePort)
