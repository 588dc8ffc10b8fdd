# Persistence boundary: document store backends and typed repositories
from .database import get_engine, init_db, session_scope
from .repositories import Repositories
from .store import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from .tables import Base, DocumentRecord

__all__ = [
    "Base",
    "DocumentRecord",
    "DocumentStore",
    "InMemoryDocumentStore",
    "Repositories",
    "SqlDocumentStore",
    "get_engine",
    "init_db",
    "session_scope",
]
