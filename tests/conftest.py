"""
Shared pytest configuration and fixtures.

This module provides fixtures used across the unit and integration suites:
an in-memory respondent store, a fixed clock and sample respondent input.
"""

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from respondent_registry.models.respondent import SchemaVariant
from respondent_registry.store import ChangeNotifier, RespondentStore, StoreClient

TODAY = date(2024, 6, 15)
NOW = datetime(2024, 6, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture
def today() -> date:
    """Reference date used for age and date-of-birth bounds."""
    return TODAY


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock frozen at 2024-06-15 09:30 UTC."""
    return lambda: NOW


@pytest.fixture
def store_client() -> Generator[StoreClient, None, None]:
    """
    Open an in-memory store for one test.

    Yields:
        StoreClient: Opened client, closed after the test.
    """
    client = StoreClient("sqlite://").open()
    yield client
    client.close()


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def store(store_client: StoreClient, notifier: ChangeNotifier, clock) -> RespondentStore:
    """Base-schema respondent store on the in-memory client."""
    return RespondentStore(
        store_client, SchemaVariant.BASE, notifier=notifier, clock=clock
    )


@pytest.fixture
def extended_store(store_client: StoreClient, clock) -> RespondentStore:
    """Extended-schema respondent store on the in-memory client."""
    return RespondentStore(store_client, SchemaVariant.EXTENDED, clock=clock)


@pytest.fixture
def make_input() -> Callable[..., dict[str, Any]]:
    """
    Build valid base-schema input, overriding any field.

    Returns:
        Callable: Factory accepting field overrides as keyword arguments.
    """

    def _make(**overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": "Ana Lopez",
            "dob": "2000-01-01",
            "phone": "+10000000001",
            "email": "ana@example.com",
            "height": "170",
            "weight": "70",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def make_extended_input(make_input) -> Callable[..., dict[str, Any]]:
    """Build valid extended-schema input, overriding any field."""

    def _make(**overrides: Any) -> dict[str, Any]:
        data = make_input(email="")
        data.update(
            {
                "pob": "Bandung",
                "gender": "Female",
                "address": "Jl. Merdeka 10",
                "semester": "3",
                "medical_history": "",
            }
        )
        data.update(overrides)
        return data

    return _make
