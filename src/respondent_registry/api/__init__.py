"""HTTP API module.

This module provides the Flask JSON API over the respondent store.
"""

from respondent_registry.api.app import create_app, run_server

__all__ = ["create_app", "run_server"]
