"""Tests for the POST /translate HTTP endpoint."""

from __future__ import annotations

import http.client
import json
import threading
import urllib.error
import urllib.request

import pytest

from translator.config import ServerConfig, TranslatorConfig
from translator.server import handle_translate_request, make_server


class TestHandleTranslateRequest:
    def test_code_payload(self):
        status, body = handle_translate_request({"code": "let x = 10;"})
        assert status == 200
        assert body == {
            "sil": "decl x\nmov x, 10",
            "python": "x = None\nx = 10",
            "cpp": body["cpp"],
        }
        assert "int x;" in body["cpp"]

    def test_ast_payload(self):
        ast = {
            "type": "Program",
            "body": [
                {
                    "type": "ExpressionStatement",
                    "expression": {
                        "type": "AssignmentExpression",
                        "operator": "=",
                        "left": {"type": "Identifier", "name": "a"},
                        "right": {"type": "Literal", "value": 1, "raw": "1"},
                    },
                }
            ],
        }
        status, body = handle_translate_request({"ast": ast})
        assert status == 200
        assert body["sil"] == "mov a, 1"

    def test_translation_failure(self):
        status, body = handle_translate_request({"code": "foo();"})
        assert status == 400
        assert body["kind"] == "UnsupportedConstruct"
        assert "CallExpression" in body["error"]

    def test_deep_nesting_is_400(self):
        source = "let a = 1; a = " + " + ".join(["a"] * 1500) + ";"
        status, body = handle_translate_request({"code": source})
        assert status == 400
        assert body["kind"] == "NestingTooDeep"

    def test_missing_code(self):
        status, body = handle_translate_request({})
        assert status == 400
        assert body["kind"] == "BadRequest"

    def test_non_object_body(self):
        status, _ = handle_translate_request(["let x;"])
        assert status == 400

    def test_configured_backends(self):
        status, body = handle_translate_request(
            {"code": "let x;"}, TranslatorConfig(backends=("python",))
        )
        assert status == 200
        assert set(body) == {"sil", "python"}


@pytest.fixture
def server_url():
    server = make_server(ServerConfig(port=0, allow_origin="http://example.test"))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()


def _request(url: str, method: str = "POST", body: bytes | None = None):
    request = urllib.request.Request(
        url, data=body, method=method, headers={"Content-Type": "application/json"}
    )
    return urllib.request.urlopen(request, timeout=5)


class TestHttpServer:
    def test_translate(self, server_url):
        body = json.dumps({"code": "let x = 10;"}).encode("utf-8")
        with _request(f"{server_url}/translate", body=body) as response:
            assert response.status == 200
            assert response.headers["Access-Control-Allow-Origin"] == "http://example.test"
            payload = json.loads(response.read())
        assert payload["sil"] == "decl x\nmov x, 10"

    def test_translation_error_is_400(self, server_url):
        body = json.dumps({"code": "foo();"}).encode("utf-8")
        with pytest.raises(urllib.error.HTTPError) as exc_info:
            _request(f"{server_url}/translate", body=body)
        assert exc_info.value.code == 400
        payload = json.loads(exc_info.value.read())
        assert payload["kind"] == "UnsupportedConstruct"
        assert exc_info.value.headers["Access-Control-Allow-Origin"] == "http://example.test"

    def test_invalid_json_is_400(self, server_url):
        with pytest.raises(urllib.error.HTTPError) as exc_info:
            _request(f"{server_url}/translate", body=b"{not json")
        assert exc_info.value.code == 400

    def test_preflight(self, server_url):
        with _request(f"{server_url}/translate", method="OPTIONS") as response:
            assert response.status == 204
            assert "POST" in response.headers["Access-Control-Allow-Methods"]

    def test_unknown_path_is_404(self, server_url):
        with pytest.raises(urllib.error.HTTPError) as exc_info:
            _request(f"{server_url}/elsewhere", body=b"{}")
        assert exc_info.value.code == 404

    def test_malformed_content_length_is_400(self, server_url):
        host, port = server_url.removeprefix("http://").split(":")
        conn = http.client.HTTPConnection(host, int(port), timeout=5)
        try:
            conn.putrequest("POST", "/translate")
            conn.putheader("Content-Type", "application/json")
            conn.putheader("Content-Length", "abc")
            conn.endheaders()
            response = conn.getresponse()
            assert response.status == 400
            assert json.loads(response.read())["kind"] == "BadRequest"
        finally:
            conn.close()
