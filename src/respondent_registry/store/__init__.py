"""Store module.

This module provides the respondent document store: the client handle, the
record store adapter and change notifications.
"""

from respondent_registry.store.client import StoreClient
from respondent_registry.store.notifier import ChangeEvent, ChangeNotifier
from respondent_registry.store.respondents import RespondentStore

__all__ = [
    "StoreClient",
    "RespondentStore",
    "ChangeEvent",
    "ChangeNotifier",
]
