"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

TEMP_PREFIX = "t"
LABEL_PREFIX = "L"

SOURCE_LANGUAGE = "javascript"

BACKEND_PYTHON = "python"
BACKEND_CPP = "cpp"

DEFAULT_BACKENDS: tuple[str, ...] = (BACKEND_PYTHON, BACKEND_CPP)

DEFAULT_INDENT = "    "

SIL_PAYLOAD_KEY = "sil"
ERROR_PAYLOAD_KEY = "error"

TRANSLATE_ENDPOINT = "/translate"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5000
KIND_PAYLOAD_KEY = "kind"
CODE_PAYLOAD_KEY = "code"
AST_PAYLOAD_KEY = "ast"
DEFAULT_ALLOW_ORIGIN = "*"
