"""Integration tests for the full respondent lifecycle.

These tests run against a SQLite file so that records survive across CLI
invocations and store client reopenings.
"""

import csv
import json

import pytest
from click.testing import CliRunner

from respondent_registry.api import create_app
from respondent_registry.browser import RecordBrowser
from respondent_registry.cli.main import cli
from respondent_registry.editor import EditorState
from respondent_registry.models.respondent import SchemaVariant
from respondent_registry.store import ChangeNotifier, RespondentStore, StoreClient
from respondent_registry.utils.exceptions import DuplicatePhoneError

pytestmark = pytest.mark.integration


def _add_args(name: str, phone: str, email: str, weight: str = "70") -> list[str]:
    return [
        "add",
        "--name", name,
        "--dob", "2000-01-01",
        "--phone", phone,
        "--email", email,
        "--height", "170",
        "--weight", weight,
    ]


class TestCliWorkflow:
    """Test the CLI end to end against a file-backed store."""

    def test_add_list_update_export_delete(self, cli_env):
        """Test every record command in sequence across separate invocations."""
        runner = CliRunner()

        # Add two respondents and reject a duplicate phone
        assert runner.invoke(cli, _add_args("Ana Lopez", "+10000000001", "ana@example.com")).exit_code == 0
        assert runner.invoke(cli, _add_args("Budi Santoso", "+10000000002", "budi@example.com", "90")).exit_code == 0
        duplicate = runner.invoke(cli, _add_args("Citra Dewi", "+10000000001", "citra@example.com"))
        assert duplicate.exit_code == 1

        # List persists across invocations, newest first
        listed = runner.invoke(cli, ["list", "--json"])
        assert listed.exit_code == 0
        rows = json.loads(listed.output)
        assert [r["name"] for r in rows] == ["Budi Santoso", "Ana Lopez"]
        ana_id = rows[1]["id"]

        # Update one field
        updated = runner.invoke(cli, ["update", ana_id, "--weight", "72"])
        assert updated.exit_code == 0
        rows = json.loads(runner.invoke(cli, ["list", "--json"]).output)
        ana = next(r for r in rows if r["id"] == ana_id)
        assert ana["weight"] == 72.0
        assert ana["bmi"] == 24.91

        # Export the filtered view to the configured directory
        exported = runner.invoke(cli, ["export", "--filter", "budi"])
        assert exported.exit_code == 0
        files = list((cli_env / "exports").glob("respondents_*.csv"))
        assert len(files) == 1
        with open(files[0], newline="", encoding="utf-8") as f:
            assert [r["Name"] for r in csv.DictReader(f)] == ["Budi Santoso"]

        # Delete and confirm it is gone
        assert runner.invoke(cli, ["delete", ana_id, "--yes"]).exit_code == 0
        rows = json.loads(runner.invoke(cli, ["list", "--json"]).output)
        assert [r["name"] for r in rows] == ["Budi Santoso"]

        # Audit trail reached the log file
        log_text = (cli_env / "logs" / "registry.log").read_text()
        assert "AUDIT [RESPONDENT_CREATED]" in log_text
        assert "AUDIT [RESPONDENT_DELETED]" in log_text

    def test_extended_variant(self, cli_env, monkeypatch):
        """Test the extended schema is selected from the environment."""
        # Arrange
        monkeypatch.setenv("RESPONDENT_REGISTRY_SCHEMA_VARIANT", "extended")
        runner = CliRunner()

        # Act
        missing_fields = runner.invoke(cli, _add_args("Ana Lopez", "+10000000001", "ana@example.com"))
        added = runner.invoke(
            cli,
            [
                "add",
                "--name", "Ana Lopez",
                "--dob", "2000-01-01",
                "--phone", "+10000000001",
                "--height", "170",
                "--weight", "70",
                "--pob", "Bandung",
                "--gender", "Female",
                "--address", "Jl. Merdeka 10",
                "--semester", "3",
            ],
        )

        # Assert
        assert missing_fields.exit_code == 1
        assert "pob:" in missing_fields.output
        assert added.exit_code == 0
        rows = json.loads(runner.invoke(cli, ["list", "--json"]).output)
        assert rows[0]["gender"] == "female"
        assert rows[0]["semester"] == 3
        assert rows[0]["email"] is None


class TestStoreReopen:
    """Test persistence across store client lifecycles."""

    def test_records_survive_reopen(self, store_url, make_input):
        """Test records and ordering survive closing and reopening the client."""
        # Arrange
        with StoreClient(store_url) as client:
            first = RespondentStore(client).create(make_input(phone="+10000000001"))

        # Act
        with StoreClient(store_url) as client:
            store = RespondentStore(client)
            second = store.create(make_input(phone="+10000000002"))
            records = store.read_all()

        # Assert
        assert [r.id for r in records] == [second.id, first.id]
        assert records[1].created_at == first.created_at
        assert second.created_at > first.created_at

    def test_unique_index_survives_reopen(self, store_url, make_input):
        """Test the phone constraint is enforced by the persisted table."""
        # Arrange
        with StoreClient(store_url) as client:
            RespondentStore(client).create(make_input(phone="+10000000001"))

        # Act
        with StoreClient(store_url) as client:
            store = RespondentStore(client)
            store._phone_holder = lambda *args, **kwargs: None
            with pytest.raises(DuplicatePhoneError):
                store.create(make_input(phone="+10000000001"))


class TestApiBrowserConsistency:
    """Test the API and the browser over one shared store."""

    def test_api_writes_visible_to_browser(self, store_url, make_input, today, clock):
        """Test writes through the API show up in a refreshed browser and export."""
        with StoreClient(store_url) as client:
            notifier = ChangeNotifier()
            store = RespondentStore(client, SchemaVariant.BASE, notifier=notifier, clock=clock)
            browser = RecordBrowser(store, today=today)
            notifier.subscribe(lambda event: browser.refresh())
            api = create_app(store).test_client()

            # Create through the API; the change event refreshes the browser
            response = api.post("/respondents", json=make_input())
            assert response.status_code == 201
            assert [row.record.name for row in browser.rows] == ["Ana Lopez"]

            # Edit through the browser's editor
            editor = browser.edit(response.get_json()["id"])
            editor.set_field("name", "Ana Maria Lopez")
            editor.submit()
            assert editor.state is EditorState.SUCCESS

            # The API sees the edit
            listed = api.get("/respondents").get_json()["respondents"]
            assert [r["name"] for r in listed] == ["Ana Maria Lopez"]
            assert listed[0]["bmi"] == browser.rows[0].bmi
