"""
Pytest configuration and shared fixtures for testing.
"""

import copy
import json
import uuid
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from app.config.settings import get_settings


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Minimal stand-in for a postgrest query builder backed by in-memory rows."""

    def __init__(self, db: "FakeSupabaseClient", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[tuple] = []
        self.single = False
        self.on_conflict: Optional[str] = None

    def select(self, columns: str = "*"):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict: Optional[str] = None):
        self.op, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column: str, value: Any):
        self.filters.append((column, value))
        return self

    def maybe_single(self):
        self.single = True
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        if (self.table, self.op) in self.db.failures:
            raise Exception(self.db.failures[(self.table, self.op)])

        rows = self.db.tables.setdefault(self.table, [])
        self.db.calls.append((self.table, self.op))

        if self.op == "select":
            found = [copy.deepcopy(r) for r in rows if self._matches(r)]
            if self.single:
                return FakeResponse(found[0]) if found else None
            return FakeResponse(found)

        if self.op == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for row in new_rows:
                row = {"id": str(uuid.uuid4()), **copy.deepcopy(row)}
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        if self.op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self.op == "upsert":
            key = self.on_conflict or "id"
            for row in rows:
                if row.get(key) == self.payload.get(key):
                    row.update(copy.deepcopy(self.payload))
                    return FakeResponse([copy.deepcopy(row)])
            row = {"id": str(uuid.uuid4()), **copy.deepcopy(self.payload)}
            rows.append(row)
            return FakeResponse([copy.deepcopy(row)])

        if self.op == "delete":
            kept = [r for r in rows if not self._matches(r)]
            deleted = [r for r in rows if self._matches(r)]
            self.db.tables[self.table] = kept
            return FakeResponse(deleted)

        raise AssertionError(f"Unsupported op {self.op}")


class FakeBucket:
    def __init__(self, db: "FakeSupabaseClient", name: str):
        self.db = db
        self.name = name

    def download(self, path: str) -> bytes:
        try:
            return self.db.files[(self.name, path)]
        except KeyError:
            raise Exception(f"Object not found: {path}")


class FakeStorage:
    def __init__(self, db: "FakeSupabaseClient"):
        self.db = db

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self.db, bucket)


class FakeAuth:
    def __init__(self, db: "FakeSupabaseClient"):
        self.db = db

    def get_user(self, token: str):
        if token not in self.db.tokens:
            raise Exception("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=self.db.tokens[token]))


class FakeFunctions:
    def __init__(self, db: "FakeSupabaseClient"):
        self.db = db
        self.invocations: List[tuple] = []
        self.fail = False

    def invoke(self, function_name: str, invoke_options: Optional[Dict[str, Any]] = None):
        if self.fail:
            raise Exception("Edge function returned 500")
        self.invocations.append((function_name, invoke_options))
        return b'{"success": true}'


class FakeSupabaseClient:
    """In-memory Supabase client covering the calls the service makes."""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.files: Dict[tuple, bytes] = {}
        self.tokens: Dict[str, str] = {}
        self.failures: Dict[tuple, str] = {}
        self.calls: List[tuple] = []
        self.storage = FakeStorage(self)
        self.auth = FakeAuth(self)
        self.functions = FakeFunctions(self)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])

    def fail(self, table: str, op: str, message: str = "database unavailable"):
        self.failures[(table, op)] = message


USER_ID = "user-1"
TOKEN = "valid-token"
RECEIPT_ID = "receipt-1"
INVOICE_ID = "invoice-1"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Deterministic settings for every test."""
    monkeypatch.setenv("AI_GATEWAY_API_KEY", "test-gateway-key")
    monkeypatch.setenv("AI_GATEWAY_URL", "https://gateway.test/v1/chat/completions")
    monkeypatch.setenv("PROVIDER_SYNC_ENABLED", "true")
    monkeypatch.setenv("RECEIPTS_BUCKET", "receipts")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_supabase():
    """Supabase fake with one user owning one JPEG receipt."""
    client = FakeSupabaseClient()
    client.tokens[TOKEN] = USER_ID
    client.tables["receipts"] = [
        {"id": RECEIPT_ID, "user_id": USER_ID, "file_path": "user-1/bill.jpg", "file_type": "image/jpeg"}
    ]
    client.files[("receipts", "user-1/bill.jpg")] = b"\xff\xd8\xff\xe0fake-jpeg"
    return client


@pytest.fixture
def sample_analysis() -> Dict[str, Any]:
    """Well-formed model output with metadata and two errors."""
    return {
        "metadata": {
            "provider_name": {"value": "Memorial Regional Medical Center", "confidence": 0.95, "source": "header"},
            "total_amount": {"value": 13297.75, "confidence": 0.98, "source": "bottom total line"},
            "service_date": {"value": "2024-12-15", "confidence": 0.92, "source": "line items"},
            "bill_date": {"value": "2025-01-08", "confidence": 0.85, "source": "statement date"},
            "category": {"value": "medical", "confidence": 0.90, "source": "inferred from services"},
            "invoice_number": {"value": "MR-2024-12345", "confidence": 0.93, "source": "header"},
            "patient_name": {"value": None, "confidence": 0.0},
        },
        "errors": [
            {
                "error_type": "duplicate_charge",
                "error_category": "high_priority",
                "description": "You were charged twice for the same X-ray.",
                "line_item_reference": "Lines 3, 7",
                "potential_savings": 50.00,
                "evidence": {"cpt_code": "71020", "duplicate_count": 2, "charge_amount": 50.00},
            },
            {
                "error_type": "upcoding",
                "error_category": "medium_priority",
                "description": "The visit was billed at a higher complexity level than described.",
                "line_item_reference": "Line 1",
                "potential_savings": 75.00,
                "evidence": {"cpt_code": "99215"},
            },
        ],
        "total_potential_savings": 100.00,
        "confidence_score": 0.85,
        "extraction_warnings": ["Patient name is hard to read"],
    }


@pytest.fixture
def sample_response_text(sample_analysis) -> str:
    """Model reply wrapping the analysis in a json fence."""
    return "Here is the analysis:\n```json\n" + json.dumps(sample_analysis) + "\n```"
