from .sqlite_store import SqliteStateStore
from .store import CandidateStore

__all__ = [
    "CandidateStore",
    "SqliteStateStore",
]
