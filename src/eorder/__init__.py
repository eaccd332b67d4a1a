"""Electronic order state: row tree, readiness checks, payload assembly and
existing-order reconciliation."""

__version__ = "0.1.0"
