from plinth.db.engine import get_engine
from plinth.db.memory import InMemoryCollectionStore, InMemoryQueueRecord
from plinth.db.sql import SqlCollectionStore

__all__ = [
    "InMemoryCollectionStore",
    "InMemoryQueueRecord",
    "SqlCollectionStore",
    "get_engine",
]
