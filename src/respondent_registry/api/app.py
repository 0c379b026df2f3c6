"""Flask application exposing respondent records as a JSON API."""

import io
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from flask import Flask, Response, jsonify, request, send_file

from respondent_registry import __version__
from respondent_registry.actions import (
    ERROR_DUPLICATE_PHONE,
    ERROR_NOT_FOUND,
    ERROR_VALIDATION,
    ActionResponse,
    create_record,
    delete_record,
    update_record,
)
from respondent_registry.browser import (
    ASCENDING,
    DESCENDING,
    EXPORT_COLUMNS,
    SortConfig,
    build_view,
    sortable_keys,
)
from respondent_registry.config.schema import Config
from respondent_registry.export import MIME_TYPES, export_filename, parse_format, render_export
from respondent_registry.logging_audit import get_operation_logger, log_audit_event
from respondent_registry.store.respondents import RespondentStore
from respondent_registry.utils.exceptions import ExportError, ReadFailure

logger = get_operation_logger("api")

STORE_KEY = "respondent_store"

STATUS_BY_ERROR = {
    ERROR_VALIDATION: 400,
    ERROR_DUPLICATE_PHONE: 409,
    ERROR_NOT_FOUND: 404,
}


def create_app(store: RespondentStore, config: Optional[Config] = None) -> Flask:
    """Build the Flask application around an opened respondent store.

    Args:
        store: Respondent store the routes read and write
        config: Loaded configuration (defaults when None)

    Returns:
        Configured Flask application

    Example:
        >>> app = create_app(store)
        >>> app.test_client().get("/health").status_code
        200
    """
    app = Flask(__name__)
    app.extensions[STORE_KEY] = store
    app.config["REGISTRY_CONFIG"] = config or Config()
    app.config["STARTED_AT"] = datetime.now(timezone.utc)
    app.config["REQUEST_COUNT"] = 0

    @app.before_request
    def log_request():
        """Log all incoming requests."""
        app.config["REQUEST_COUNT"] += 1
        logger.info(
            f"Request #{app.config['REQUEST_COUNT']}: {request.method} {request.path} "
            f"(Content-Length: {request.content_length or 0})"
        )
        if request.data and logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Request body: {request.get_data(as_text=True)[:500]}")

    @app.route("/health", methods=["GET"])
    def health_check():
        """Report server status, version, uptime and request count."""
        uptime = datetime.now(timezone.utc) - app.config["STARTED_AT"]
        return jsonify(
            {
                "status": "healthy",
                "version": __version__,
                "schema_variant": store.variant.value,
                "uptime_seconds": int(uptime.total_seconds()),
                "request_count": app.config["REQUEST_COUNT"],
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        ), 200

    @app.route("/respondents", methods=["GET"])
    def list_respondents():
        """List respondents with derived fields, filtered and sorted."""
        try:
            sort = _sort_from_request(store)
        except ValueError as e:
            return _error(str(e), 400)

        try:
            records = store.read_all()
        except ReadFailure:
            logger.exception("Error fetching respondents")
            return _error("Failed to read respondents.", 503)

        rows = build_view(records, request.args.get("q", ""), sort)
        return jsonify({"count": len(rows), "respondents": [row.to_dict() for row in rows]}), 200

    @app.route("/respondents", methods=["POST"])
    def create_respondent():
        response = create_record(store, _json_body())
        return _action_result(response, success_status=201)

    @app.route("/respondents/<record_id>", methods=["PUT"])
    def update_respondent(record_id: str):
        response = update_record(store, record_id, _json_body())
        return _action_result(response, success_status=200)

    @app.route("/respondents/<record_id>", methods=["DELETE"])
    def delete_respondent(record_id: str):
        response = delete_record(store, record_id)
        return _action_result(response, success_status=200)

    @app.route("/respondents/export", methods=["GET"])
    def export_respondents():
        """Download the filtered, sorted view as CSV or XLSX."""
        try:
            export_format = parse_format(request.args.get("format", "csv"))
            sort = _sort_from_request(store)
        except (ExportError, ValueError) as e:
            return _error(str(e), 400)

        try:
            records = store.read_all()
        except ReadFailure:
            logger.exception("Error fetching respondents for export")
            return _error("Failed to read respondents.", 503)

        rows = build_view(records, request.args.get("q", ""), sort)
        content = render_export(rows, EXPORT_COLUMNS[store.variant], export_format)
        filename = export_filename(export_format)
        log_audit_event(
            "EXPORT_WRITTEN",
            {"status": "success", "record_count": len(rows), "output_file": filename},
        )
        return send_file(
            io.BytesIO(content),
            mimetype=MIME_TYPES[export_format],
            as_attachment=True,
            download_name=filename,
        )

    @app.errorhandler(404)
    def not_found(error):
        return _error("Not found.", 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _error("Method not allowed.", 405)

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        return _error("An unexpected error occurred.", 500)

    return app


def _json_body() -> Any:
    """Request body as parsed JSON, or None when it is not JSON."""
    return request.get_json(silent=True)


def _sort_from_request(store: RespondentStore) -> Optional[SortConfig]:
    key = request.args.get("sort")
    if not key:
        return None
    if key not in sortable_keys(store.variant):
        raise ValueError(f"Cannot sort by unknown column: {key}")
    direction = request.args.get("direction", ASCENDING).lower()
    if direction not in (ASCENDING, DESCENDING):
        raise ValueError(f"Invalid sort direction: {direction}")
    return SortConfig(key, direction)


def _action_result(response: ActionResponse, success_status: int) -> tuple[Response, int]:
    body = response.to_dict()
    if response.record is not None:
        body["respondent"] = response.record.to_dict()
    if response.success:
        return jsonify(body), success_status
    return jsonify(body), STATUS_BY_ERROR.get(response.error, 500)


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"success": False, "message": message}), status


def run_server(
    store: RespondentStore,
    config: Optional[Config] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    debug: bool = False,
) -> None:
    """Run the API with Flask's built-in server.

    Args:
        store: Opened respondent store
        config: Loaded configuration; host and port default to its api section
        host: Host address override
        port: Port number override
        debug: Enable debug mode
    """
    config = config or Config()
    host = host or config.api.host
    port = port or config.api.port
    app = create_app(store, config)

    logger.info(f"Starting Respondent Registry API on http://{host}:{port}")
    logger.info(f"Health check available at: http://{host}:{port}/health")
    app.run(host=host, port=port, debug=debug, use_reloader=False)
