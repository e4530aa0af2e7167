import os
import sys

import pytest


PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from nrm.state.sqlite_store import SqliteStateStore  # noqa: E402


@pytest.fixture
def sqlite_store(tmp_path) -> SqliteStateStore:  # noqa: ANN001
    store = SqliteStateStore(str(tmp_path / "state.sqlite3"))
    store.ensure_schema()
    return store
