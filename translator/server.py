"""HTTP endpoint — ``POST /translate`` returning SIL plus every backend.

Request body is JSON with either ``code`` (JavaScript source) or ``ast``
(an ESTree tree).  Success is 200 ``{"sil", "python", "cpp"}``; any
translation failure is 400 ``{"error", "kind"}``.  Every response carries
``Access-Control-Allow-Origin``.
"""

from __future__ import annotations

import json
import logging
from functools import partial
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .api import translate_estree, translate_source
from .config import ServerConfig, TranslatorConfig
from .errors import TranslationError
from . import constants

logger = logging.getLogger(__name__)


def _error_body(message: str, kind: str) -> dict[str, Any]:
    return {constants.ERROR_PAYLOAD_KEY: message, constants.KIND_PAYLOAD_KEY: kind}


def handle_translate_request(
    payload: Any, config: TranslatorConfig = TranslatorConfig()
) -> tuple[int, dict[str, Any]]:
    """Translate one decoded request body into ``(status, response body)``."""
    if not isinstance(payload, dict):
        return HTTPStatus.BAD_REQUEST, _error_body(
            "request body must be a JSON object", "BadRequest"
        )
    code = payload.get(constants.CODE_PAYLOAD_KEY)
    ast = payload.get(constants.AST_PAYLOAD_KEY)
    try:
        if isinstance(code, str):
            result = translate_source(code, config=config)
        elif isinstance(ast, dict):
            result = translate_estree(ast, config=config)
        else:
            return HTTPStatus.BAD_REQUEST, _error_body(
                f"expected a '{constants.CODE_PAYLOAD_KEY}' string "
                f"or an '{constants.AST_PAYLOAD_KEY}' object",
                "BadRequest",
            )
    except TranslationError as exc:
        logger.info("Translation rejected: %s", exc)
        return HTTPStatus.BAD_REQUEST, exc.to_dict()
    return HTTPStatus.OK, result.to_payload()


class TranslateRequestHandler(BaseHTTPRequestHandler):
    """Routes ``/translate``; everything else is 404."""

    def __init__(self, *args, config: ServerConfig, **kwargs):
        self.config = config
        super().__init__(*args, **kwargs)

    def do_OPTIONS(self):
        self.send_response(HTTPStatus.NO_CONTENT)
        self._cors_headers()
        self.send_header("Access-Control-Allow-Methods", "POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_POST(self):
        if self.path.split("?", 1)[0] != constants.TRANSLATE_ENDPOINT:
            self._send_json(
                HTTPStatus.NOT_FOUND, _error_body(f"no route for {self.path}", "NotFound")
            )
            return
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            length = -1
        if length < 0:
            self._send_json(
                HTTPStatus.BAD_REQUEST,
                _error_body("invalid Content-Length header", "BadRequest"),
            )
            self.close_connection = True
            return
        raw = self.rfile.read(length)
        try:
            payload = json.loads(raw.decode("utf-8") or "null")
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            self._send_json(
                HTTPStatus.BAD_REQUEST, _error_body(f"invalid JSON: {exc}", "BadRequest")
            )
            return
        status, body = handle_translate_request(payload, self.config.translator)
        self._send_json(status, body)

    def do_GET(self):
        self._send_json(
            HTTPStatus.NOT_FOUND, _error_body(f"no route for {self.path}", "NotFound")
        )

    def _cors_headers(self):
        self.send_header("Access-Control-Allow-Origin", self.config.allow_origin)

    def _send_json(self, status: int, body: dict[str, Any]):
        encoded = json.dumps(body).encode("utf-8")
        self.send_response(status)
        self._cors_headers()
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def log_message(self, format, *args):
        logger.info("%s %s", self.address_string(), format % args)


def make_server(config: ServerConfig = ServerConfig()) -> ThreadingHTTPServer:
    """Bind a threaded server for *config*; the caller runs ``serve_forever``."""
    handler = partial(TranslateRequestHandler, config=config)
    return ThreadingHTTPServer((config.host, config.port), handler)


def serve(config: ServerConfig = ServerConfig()):
    server = make_server(config)
    host, port = server.server_address[:2]
    logger.info("Serving POST %s on http://%s:%d", constants.TRANSLATE_ENDPOINT, host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
