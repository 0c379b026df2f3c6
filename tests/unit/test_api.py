"""Unit tests for the respondent JSON API."""

import csv
import io
from unittest.mock import patch

import pytest

from respondent_registry.api import create_app
from respondent_registry.utils.exceptions import ReadFailure


@pytest.fixture
def client(store):
    """Flask test client over the in-memory store."""
    app = create_app(store)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def payload(make_input):
    return make_input(height=170, weight=70)


class TestHealthEndpoint:
    """Test /health."""

    def test_health_check(self, client):
        """Test health reports status, version and request count."""
        # Act
        response = client.get("/health")

        # Assert
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["schema_variant"] == "base"
        assert data["request_count"] == 1


class TestCreateEndpoint:
    """Test POST /respondents."""

    def test_create(self, client, payload):
        # Act
        response = client.post("/respondents", json=payload)

        # Assert
        assert response.status_code == 201
        body = response.get_json()
        assert body["success"] is True
        assert body["respondent"]["id"] == body["id"]
        assert body["respondent"]["created_at"].endswith("Z")

    def test_validation_error(self, client, payload):
        """Test invalid input returns 400 with per-field errors."""
        # Arrange
        payload["email"] = "nope"

        # Act
        response = client.post("/respondents", json=payload)

        # Assert
        assert response.status_code == 400
        body = response.get_json()
        assert body["message"] == "Validation failed. Please check your input."
        assert body["errors"] == {"email": "Please enter a valid email address."}

    def test_infinite_height_rejected(self, client, payload):
        """Test a non-finite height never reaches the store or the JSON output."""
        # Arrange
        payload["height"] = "inf"

        # Act
        response = client.post("/respondents", json=payload)

        # Assert
        assert response.status_code == 400
        assert response.get_json()["errors"] == {"height": "Height must be a positive number."}
        assert client.get("/respondents").get_json()["count"] == 0

    def test_non_json_body(self, client):
        """Test a body that is not JSON is a validation failure."""
        response = client.post("/respondents", data="name=Ana", content_type="text/plain")

        assert response.status_code == 400

    def test_duplicate_phone(self, client, payload):
        # Arrange
        client.post("/respondents", json=payload)

        # Act
        response = client.post("/respondents", json=payload)

        # Assert
        assert response.status_code == 409
        assert response.get_json()["message"] == "A respondent with this phone number already exists."


class TestListEndpoint:
    """Test GET /respondents."""

    def test_list_with_derived_fields(self, client, payload):
        # Arrange
        client.post("/respondents", json=payload)

        # Act
        response = client.get("/respondents")

        # Assert
        assert response.status_code == 200
        body = response.get_json()
        assert body["count"] == 1
        assert body["respondents"][0]["age"] == 24
        assert body["respondents"][0]["bmi"] == 24.22

    def test_filter_and_sort(self, client, make_input):
        """Test q, sort and direction query parameters."""
        # Arrange
        client.post("/respondents", json=make_input(name="Ana Lopez", phone="+10000000001"))
        client.post("/respondents", json=make_input(name="Anabel Ruiz", phone="+10000000002"))
        client.post("/respondents", json=make_input(name="Budi Santoso", phone="+10000000003", email="budi@example.com"))

        # Act
        response = client.get("/respondents?q=ana&sort=name&direction=descending")

        # Assert
        names = [r["name"] for r in response.get_json()["respondents"]]
        assert names == ["Anabel Ruiz", "Ana Lopez"]

    def test_bad_sort(self, client):
        response = client.get("/respondents?sort=shoe_size")

        assert response.status_code == 400

    def test_read_failure(self, client, store):
        """Test an unreadable store is a 503, not an empty list."""
        # Act
        with patch.object(store, "read_all", side_effect=ReadFailure("down")):
            response = client.get("/respondents")

        # Assert
        assert response.status_code == 503


class TestUpdateEndpoint:
    """Test PUT /respondents/<id>."""

    def test_update(self, client, payload):
        # Arrange
        record_id = client.post("/respondents", json=payload).get_json()["id"]
        payload["weight"] = 72

        # Act
        response = client.put(f"/respondents/{record_id}", json=payload)

        # Assert
        assert response.status_code == 200
        assert response.get_json()["respondent"]["weight"] == 72.0

    def test_update_missing(self, client, payload):
        response = client.put("/respondents/missing", json=payload)

        assert response.status_code == 404
        assert response.get_json()["message"] == "Respondent not found."

    def test_update_duplicate_phone(self, client, make_input):
        # Arrange
        first = client.post("/respondents", json=make_input(phone="+10000000001")).get_json()["id"]
        client.post("/respondents", json=make_input(phone="+10000000002"))

        # Act
        response = client.put(f"/respondents/{first}", json=make_input(phone="+10000000002"))

        # Assert
        assert response.status_code == 409


class TestDeleteEndpoint:
    """Test DELETE /respondents/<id>."""

    def test_delete(self, client, payload):
        # Arrange
        record_id = client.post("/respondents", json=payload).get_json()["id"]

        # Act
        response = client.delete(f"/respondents/{record_id}")

        # Assert
        assert response.status_code == 200
        assert client.get("/respondents").get_json()["count"] == 0

    def test_delete_missing(self, client):
        response = client.delete("/respondents/missing")

        assert response.status_code == 200


class TestExportEndpoint:
    """Test GET /respondents/export."""

    def test_csv_download(self, client, make_input):
        """Test the filtered view downloads as a dated CSV attachment."""
        # Arrange
        client.post("/respondents", json=make_input(name="Ana Lopez", phone="+10000000001"))
        client.post("/respondents", json=make_input(name="Budi Santoso", phone="+10000000002"))

        # Act
        response = client.get("/respondents/export?format=csv&q=budi")

        # Assert
        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "respondents_" in response.headers["Content-Disposition"]
        rows = list(csv.DictReader(io.StringIO(response.data.decode("utf-8"))))
        assert [r["Name"] for r in rows] == ["Budi Santoso"]

    def test_xlsx_download(self, client, payload):
        client.post("/respondents", json=payload)

        response = client.get("/respondents/export?format=xlsx")

        assert response.status_code == 200
        assert response.data[:2] == b"PK"

    def test_unknown_format(self, client):
        response = client.get("/respondents/export?format=pdf")

        assert response.status_code == 400


class TestErrorHandlers:
    """Test JSON error responses."""

    def test_unknown_route(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.get_json()["success"] is False

    def test_method_not_allowed(self, client):
        response = client.patch("/respondents")

        assert response.status_code == 405
