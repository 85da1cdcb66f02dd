"""Domain layer for coopledger."""

_SERVICES = {
    "LedgerStore": "coopledger.domain.ledger",
    "LedgerDirectory": "coopledger.domain.directory",
    "ChangeRequestWorkflow": "coopledger.domain.change_request",
    "PartitionRouter": "coopledger.domain.branches",
    "categorize": "coopledger.domain.categorizer",
}

__all__ = list(_SERVICES)


# Services import the database layer, which imports domain entities, so they
# are resolved lazily to avoid circular imports.
def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
