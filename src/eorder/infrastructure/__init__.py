"""Adapters for external systems."""

from .service_client import ElectronicOrderClient

__all__ = ["ElectronicOrderClient"]
