"""SQLite catalog of sidecars and their videos."""

from .store import BatchResult, CatalogBusyError, CatalogError, CatalogStore

__all__ = ["BatchResult", "CatalogBusyError", "CatalogError", "CatalogStore"]
