import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(ROOT / "src"))

from datatables_query import DatabaseBackend


class StubBackend(DatabaseBackend):
    """Records every store call and answers with canned values."""

    def __init__(self, total=0, filtered=0, records=None, error=None):
        super().__init__(None)
        self.total = total
        self.filtered = filtered
        self.records = records or []
        self.error = error
        self.calls = []

    async def count(self):
        self.calls.append(("count",))
        if self.error is not None:
            raise self.error
        return self.total

    async def count_matching(self, find_parameters):
        self.calls.append(("count_matching", find_parameters))
        return self.filtered

    async def find_page(self, find_parameters, select_parameters, sort_parameters, limit, offset):
        self.calls.append(("find_page", find_parameters, select_parameters, sort_parameters, limit, offset))
        return self.records


@pytest.fixture
def stub_backend():
    return StubBackend(
        total=100,
        filtered=5,
        records=[
            {"name": "Alice Smith", "age": 21, "email": "alice@example.com"},
            {"name": "Bob Jones", "age": 23, "email": "bob@example.com"},
        ],
    )


@pytest.fixture
def students_request():
    return {
        "draw": 1,
        "start": 0,
        "length": 10,
        "search": {"value": "", "regex": False},
        "order": [{"column": 0, "dir": "asc"}],
        "columns": [
            {"data": "name", "searchable": True, "orderable": True},
            {"data": "age", "searchable": "false", "orderable": "true"},
            {"data": "email", "searchable": "true", "orderable": "false"},
        ],
    }
