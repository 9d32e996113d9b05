"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time and require Supabase credentials
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime
from typing import Generator

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(
        self,
        data: list = None,
        count: int = None,
        inserted: list = None,
        error: Exception = None
    ):
        self._data = data or []
        self._count = count
        self._inserted = inserted if inserted is not None else []
        self._error = error
        self._pending_insert = []

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - add id and timestamps
        if isinstance(data, dict):
            data = [data]
        rows = []
        for item in data:
            row = dict(item)
            row["id"] = f"test-uuid-{len(self._inserted) + 1}"
            row["created_at"] = datetime.utcnow().isoformat() + "Z"
            rows.append(row)
        self._data = rows
        self._pending_insert = rows
        return self

    def ilike(self, column, pattern):
        # No wildcards are used by the app, so this is a case-insensitive equals
        self._data = [
            row for row in self._data
            if str(row.get(column, "")).lower() == str(pattern).lower()
        ]
        return self

    def eq(self, column, value):
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        self._inserted.extend(self._pending_insert)
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, count: int = None, inserted: list = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self._inserted = inserted if inserted is not None else []
        self._error = error

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self._data.copy(), self._count, self._inserted, self._error)

    def select(self, *args, **kwargs):
        return self._query()

    def insert(self, data):
        return self._query().insert(data)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}
        self.inserted = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        config = self._tables.setdefault(table_name, {"error": None})
        config.update({"data": data, "count": count})

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise error."""
        config = self._tables.setdefault(table_name, {"data": [], "count": None})
        config["error"] = error

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        config = self._tables.get(name, {"data": [], "count": None, "error": None})
        return MockSupabaseTable(
            config.get("data", []),
            config.get("count"),
            self.inserted.setdefault(name, []),
            config.get("error")
        )


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "name": "Bolo de Cenoura", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.product_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def sample_product_data() -> dict:
    """Sample product row for testing."""
    return {
        "id": "test-uuid-123",
        "name": "Bolo de Cenoura",
        "category": "Refrigerado/Doces",
        "unit": "cake",
        "description": "Refrigerado/Doces - Bolo de Cenoura",
        "created_at": "2025-12-05T10:00:00Z"
    }


@pytest.fixture
def sample_catalog_csv() -> str:
    """Catalog CSV with seven valid rows."""
    return (
        "Product Name,Category,Unit,Description\n"
        "Bolo de Cenoura,Refrigerado/Doces,,\n"
        "Mousse de Maracujá,Refrigerado/Doces,,\n"
        "Pão de Queijo,Salgados,PCS,\n"
        "Coxinha,Salgados,,Frango com catupiry\n"
        "\"Torta de Limão, Fatia\",Refrigerado/Doces,,\n"
        "Pão de Forma,Embalados,,\n"
        "Bolo de Fubá,In Display/Itens em Exposição,,\n"
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def created_payloads() -> list:
    """Payloads received by the fake create capability."""
    return []


@pytest.fixture
def import_service(created_payloads):
    """
    CatalogImportService with an in-memory create capability and no delays.

    Usage:
        def test_something(import_service, created_payloads):
            import_service.run(csv_text)
            assert len(created_payloads) == 7
    """
    from services.import_service import CatalogImportService

    return CatalogImportService(
        create_record=created_payloads.append,
        batch_size=5,
        batch_delay_seconds=0,
        record_timeout_seconds=5
    )


@pytest.fixture
def test_client(import_service):
    """
    Create FastAPI test client wired to the in-memory import service.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/imports/unknown")
            assert response.status_code == 404
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch("routes.imports.get_catalog_import_service", return_value=import_service):
        yield TestClient(app)
