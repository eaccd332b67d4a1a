"""
ElectronicOrderServicePort - Port interface for the electronic order backend

Domain logic depends only on this Port. The HTTP adapter lives in
``eorder.infrastructure.service_client``; tests substitute mocks.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    """Base exception for backend call failures.

    The action layer catches this per call, logs and counts it, and keeps
    going; it is never propagated to the caller.
    """
    pass


class ServiceTimeoutError(ServiceError):
    """Backend did not answer within the configured timeout."""
    pass


class ServiceUnavailableError(ServiceError):
    """Backend could not be reached (connection refused, DNS, TLS...)."""
    pass


class ServiceResponseError(ServiceError):
    """Backend answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ServiceInvalidResponseError(ServiceError):
    """Backend answered with a body that could not be interpreted."""
    pass


class ElectronicOrderServicePort(ABC):
    """
    Abstract interface for the electronic order backend.

    Read operations return the decoded JSON payload; write operations take a
    request body built by ``eorder.domain.payload`` and return the decoded
    response. Every method raises ``ServiceError`` (or a subclass) on failure.
    Calls are made at most once; implementations must not retry.
    """

    @abstractmethod
    async def get_customers(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_customer_presets(self, short_code: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def get_doc_types(self, county_id: Any) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_doc_type_helpers(self, document_type_id: Any) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def create_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Create the order; response carries ``head.payloadID`` and ``rows[0].documentID``."""
        pass

    @abstractmethod
    async def add_doc(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Add documents; response carries ``docsAdded[0].documentID``."""
        pass

    @abstractmethod
    async def update_doc(self, body: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def remove_doc(self, body: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def cancel_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def save_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Save (status draft) or submit (status submitted) the whole order."""
        pass
