"""Python backend — SIL rendered as indented Python source."""

from __future__ import annotations

from ._base import BaseBackend
from .. import constants


class PythonBackend(BaseBackend):
    NAME = constants.BACKEND_PYTHON

    COMMENT_PREFIX = "#"
    TRUE_LITERAL = "True"
    FALSE_LITERAL = "False"
    NULL_LITERAL = "None"

    IF_FALSE_TEMPLATE = "if not {test}:"
    IF_TRUE_TEMPLATE = "if {test}:"
    EMPTY_BLOCK_STATEMENT = "pass"

    def function_header(self, name: str, params: list[str]) -> str:
        return f"def {name}({', '.join(params)}):"
