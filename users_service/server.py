"""HTTP server entry point for the users service."""

from __future__ import annotations

import argparse
import json
import logging
import os
from typing import Optional, Sequence

from flask import Flask, Response

from .app import App, open_app
from .handlers import APP_EXTENSION, create_users_blueprint

_log = logging.getLogger(__name__)


def _ping() -> Response:
    return Response(json.dumps("PONG"), status=200, mimetype="application/json")


def create_server(app: App) -> Flask:
    """Build the Flask application serving the users API for ``app``."""
    server = Flask(__name__)
    server.extensions[APP_EXTENSION] = app
    server.add_url_rule("/ping", "ping", _ping, methods=["GET"])
    server.register_blueprint(create_users_blueprint())
    return server


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Connect to the database and serve the API until interrupted."""
    parser = argparse.ArgumentParser(
        prog="users-service", description="Serve the users HTTP API."
    )
    parser.add_argument("--host", default="0.0.0.0", help="interface to listen on")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT") or 8080),
        help="port to listen on (default: $PORT or 8080)",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    try:
        service = open_app()
    except ConnectionError as exc:
        _log.error("%s", exc)
        return 1

    try:
        create_server(service).run(host=args.host, port=args.port)
    finally:
        service.close()
    return 0