"""Object store gateway.

Public API:
- open_store: Open, create or upgrade a named store
- ObjectStore: CRUD, index scans and atomic batches

Operations for ObjectStore.run_atomic:
- Clear, Put, Add, Delete
"""

from shelf.store.gateway import ObjectStore, open_store
from shelf.store.operations import Add, Clear, Delete, Operation, Put

__all__ = [
    "Add",
    "Clear",
    "Delete",
    "ObjectStore",
    "Operation",
    "Put",
    "open_store",
]
