"""HTTP surface (FastAPI) over the ledger kernel."""

from ledger_api.app import create_app

__all__ = ["create_app"]
