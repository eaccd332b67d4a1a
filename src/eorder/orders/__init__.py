"""Order actions: the service layer between the row tree and the backend."""

from .service import ElectronicOrderService, ServiceCallResult

__all__ = ["ElectronicOrderService", "ServiceCallResult"]
