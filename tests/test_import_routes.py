"""
API tests for the catalog import routes.

Background tasks run synchronously inside TestClient, so a started import
has finished by the time the POST returns.
"""

from unittest.mock import patch

from services.import_service import CatalogImportService


def _upload(csv_text: str, name: str = "catalog.csv", encoding: str = "utf-8") -> dict:
    return {"file": (name, csv_text.encode(encoding), "text/csv")}


class TestPreviewRoute:
    """POST /api/imports/products/preview"""

    def test_preview(self, test_client, created_payloads, sample_catalog_csv):
        """Returns counts and records with units, without creating anything."""
        # Act
        response = test_client.post("/api/imports/products/preview", files=_upload(sample_catalog_csv))

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["total_rows"] == 7
        assert body["valid_count"] == 7
        assert body["error_count"] == 0
        assert body["records"][0]["unit"] == "cake"
        assert created_payloads == []

    def test_preview_lists_validation_errors(self, test_client):
        csv_text = "Product Name,Category\nCoxinha,Salgados\n,Salgados\nX,Doces\n"

        response = test_client.post("/api/imports/products/preview", files=_upload(csv_text))

        assert response.json()["validation_errors"] == [
            "Row 2: Product name is missing",
            "Row 3: Product name must be at least 2 characters",
        ]

    def test_preview_latin1_file(self, test_client):
        """Latin-1 uploads are decoded without an explicit encoding."""
        csv_text = "Product Name,Category\nBolo de Fubá,Itens em Exposição\n"

        response = test_client.post(
            "/api/imports/products/preview",
            files=_upload(csv_text, encoding="latin-1")
        )

        record = response.json()["records"][0]
        assert record["name"] == "Bolo de Fubá"
        assert record["unit"] == "slice"

    def test_preview_missing_columns(self, test_client):
        response = test_client.post(
            "/api/imports/products/preview",
            files=_upload("Name,Price\nCoxinha,5\n")
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "IMPORT_MISSING_COLUMNS"

    def test_preview_bad_encoding(self, test_client):
        response = test_client.post(
            "/api/imports/products/preview?encoding=utf-8",
            files=_upload("Product Name,Category\nPão,Salgados\n", encoding="latin-1")
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "IMPORT_DECODE_FAILED"


class TestStartImportRoute:
    """POST /api/imports/products"""

    def test_start_import(self, test_client, created_payloads, sample_catalog_csv):
        """Returns 202 with a session, and the background run creates every record."""
        # Act
        response = test_client.post("/api/imports/products", files=_upload(sample_catalog_csv))

        # Assert
        assert response.status_code == 202
        session_id = response.json()["session_id"]
        assert len(created_payloads) == 7

        status = test_client.get(f"/api/imports/{session_id}").json()
        assert status["phase"] == "completed"
        assert status["progress"] == 100
        assert status["stats"] == {"total": 7, "success": 7, "failed": 0}
        assert status["summary"] == "Successfully imported 7 of 7 products; 0 failed"

    def test_missing_columns_rejected_up_front(self, test_client, created_payloads):
        response = test_client.post(
            "/api/imports/products",
            files=_upload("Product Name,Price\nCoxinha,5\n")
        )

        assert response.status_code == 422
        assert response.json()["error"]["details"]["missing"] == ["category"]
        assert created_payloads == []

    def test_conflict_when_running(self, test_client, import_service, sample_catalog_csv):
        """A second import while one is active returns 409."""
        import_service.start_session("first.csv")

        response = test_client.post("/api/imports/products", files=_upload(sample_catalog_csv))

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "IMPORT_ALREADY_RUNNING"

    def test_failures_reported(self, test_client, sample_catalog_csv):
        """Downstream failures appear on the session."""
        def create(payload):
            if payload["name"] == "Coxinha":
                raise RuntimeError("duplicate key value")

        service = CatalogImportService(create_record=create, batch_delay_seconds=0)

        with patch("routes.imports.get_catalog_import_service", return_value=service):
            session_id = test_client.post(
                "/api/imports/products", files=_upload(sample_catalog_csv)
            ).json()["session_id"]
            status = test_client.get(f"/api/imports/{session_id}").json()

        assert status["stats"] == {"total": 7, "success": 6, "failed": 1}
        assert status["failures"] == [{"name": "Coxinha", "error": "duplicate key value"}]


class TestSessionRoutes:
    """GET /api/imports/{id} and POST /api/imports/{id}/cancel"""

    def test_unknown_session(self, test_client):
        response = test_client.get("/api/imports/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "IMPORT_SESSION_NOT_FOUND"

    def test_cancel(self, test_client, import_service):
        session = import_service.start_session("catalog.csv")

        response = test_client.post(f"/api/imports/{session.id}/cancel")

        assert response.status_code == 200
        assert session.cancel_requested

    def test_cancel_unknown(self, test_client):
        response = test_client.post("/api/imports/nope/cancel")

        assert response.status_code == 404


class TestHealthRoute:
    """GET /health"""

    def test_health_degraded_without_database(self, test_client):
        with patch("main.check_connection", return_value={"status": "unhealthy", "error": "down"}):
            response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
