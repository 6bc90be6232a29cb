"""Translation failures.

Every failure is terminal for the call that raised it: nothing partial is
returned and no state survives.  Each error carries a short ``kind`` tag
that collaborators (CLI, HTTP) put next to the message.
"""

from __future__ import annotations

from typing import Any

from .ir import SourceLocation


class TranslationError(ValueError):
    kind: str = "TranslationError"

    def __init__(self, message: str, location: SourceLocation | None = None):
        if location is not None and not location.is_unknown():
            message = f"{message} at {location}"
        super().__init__(message)
        self.location = location

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "error": str(self)}


class UnsupportedConstruct(TranslationError):
    kind = "UnsupportedConstruct"

    def __init__(
        self,
        node_kind: str,
        location: SourceLocation | None = None,
        detail: str = "",
    ):
        self.node_kind = node_kind
        message = f"Unsupported construct: {node_kind}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, location)


class UnsupportedOperator(TranslationError):
    kind = "UnsupportedOperator"

    def __init__(
        self,
        operator: str,
        node_kind: str,
        location: SourceLocation | None = None,
    ):
        self.operator = operator
        self.node_kind = node_kind
        super().__init__(
            f"Unsupported operator '{operator}' in {node_kind}", location
        )


class InvalidAssignmentTarget(TranslationError):
    kind = "InvalidAssignmentTarget"

    def __init__(self, target_kind: str, location: SourceLocation | None = None):
        self.target_kind = target_kind
        super().__init__(
            f"Invalid assignment target: {target_kind} (expected a variable name)",
            location,
        )


class MalformedControlFlow(TranslationError):
    """Jump/label structure the structured emitter cannot lay out."""

    kind = "MalformedControlFlow"

    def __init__(self, label: str, reason: str):
        self.label = label
        self.reason = reason
        super().__init__(f"Malformed control flow at '{label}': {reason}")


class SourceSyntaxError(TranslationError):
    """The parser could not produce a syntax tree for the source text."""

    kind = "SyntaxError"

    def __init__(self, detail: str, location: SourceLocation | None = None):
        self.detail = detail
        super().__init__(f"Syntax error: {detail}", location)


class NestingTooDeep(TranslationError):
    """The input nests deeper than the recursive passes can follow."""

    kind = "NestingTooDeep"

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Input nested too deeply to translate (during {stage})")
