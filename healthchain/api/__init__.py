# HTTP surface for the ledger
from .routes import router

__all__ = ["router"]
