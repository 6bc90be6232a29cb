"""Syntax tree — the read-only ESTree-shaped input to lowering.

The tree is a closed union of frozen pydantic models, one per supported
node kind, plus ``OpaqueNode`` which stands in for anything outside the
grammar subset and only remembers its kind name.  Lowering rejects opaque
nodes, so out-of-grammar input surfaces as a translation failure instead of
being skipped.

``from_estree`` accepts esprima-style JSON dicts directly; the tree-sitter
adapter in ``frontend`` builds the same models from a concrete parse tree.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from .errors import NestingTooDeep, SourceSyntaxError
from .ir import SourceLocation

OPAQUE_TAG = "Opaque"


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    loc: Optional[SourceLocation] = None

    @field_validator("loc", mode="before")
    @classmethod
    def _estree_loc(cls, value: Any) -> Any:
        """Accept ESTree ``{"start": {line, column}, "end": {...}}`` spans."""
        if isinstance(value, dict) and "start" in value:
            start, end = value["start"], value.get("end", value["start"])
            return SourceLocation(
                start_line=start["line"],
                start_col=start["column"],
                end_line=end["line"],
                end_col=end["column"],
            )
        return value


class Program(_Node):
    type: str = "Program"
    body: list[SyntaxNode] = []


class VariableDeclaration(_Node):
    type: str = "VariableDeclaration"
    kind: str = "let"
    declarations: list[SyntaxNode] = []


class VariableDeclarator(_Node):
    type: str = "VariableDeclarator"
    id: SyntaxNode
    init: Optional[SyntaxNode] = None


class Literal(_Node):
    type: str = "Literal"
    value: Any = None
    raw: str = ""


class Identifier(_Node):
    type: str = "Identifier"
    name: str


class BinaryExpression(_Node):
    type: str = "BinaryExpression"
    operator: str
    left: SyntaxNode
    right: SyntaxNode


class LogicalExpression(_Node):
    type: str = "LogicalExpression"
    operator: str
    left: SyntaxNode
    right: SyntaxNode


class AssignmentExpression(_Node):
    type: str = "AssignmentExpression"
    operator: str = "="
    left: SyntaxNode
    right: SyntaxNode


class ExpressionStatement(_Node):
    type: str = "ExpressionStatement"
    expression: SyntaxNode


class BlockStatement(_Node):
    type: str = "BlockStatement"
    body: list[SyntaxNode] = []


class IfStatement(_Node):
    type: str = "IfStatement"
    test: SyntaxNode
    consequent: SyntaxNode
    alternate: Optional[SyntaxNode] = None


class WhileStatement(_Node):
    type: str = "WhileStatement"
    test: SyntaxNode
    body: SyntaxNode


class ForStatement(_Node):
    type: str = "ForStatement"
    init: Optional[SyntaxNode] = None
    test: Optional[SyntaxNode] = None
    update: Optional[SyntaxNode] = None
    body: SyntaxNode


class FunctionDeclaration(_Node):
    type: str = "FunctionDeclaration"
    id: SyntaxNode
    params: list[SyntaxNode] = []
    body: SyntaxNode


class ReturnStatement(_Node):
    type: str = "ReturnStatement"
    argument: Optional[SyntaxNode] = None


class OpaqueNode(_Node):
    """Any node kind outside the supported grammar subset."""


NODE_CLASSES: dict[str, type[_Node]] = {
    cls.__name__: cls
    for cls in (
        Program,
        VariableDeclaration,
        VariableDeclarator,
        Literal,
        Identifier,
        BinaryExpression,
        LogicalExpression,
        AssignmentExpression,
        ExpressionStatement,
        BlockStatement,
        IfStatement,
        WhileStatement,
        ForStatement,
        FunctionDeclaration,
        ReturnStatement,
    )
}


def _node_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
        if kind == "Literal" and ("regex" in value or "bigint" in value):
            return OPAQUE_TAG
    else:
        kind = getattr(value, "type", None)
        if isinstance(value, OpaqueNode):
            return OPAQUE_TAG
    return kind if kind in NODE_CLASSES else OPAQUE_TAG


SyntaxNode = Annotated[
    Union[
        Annotated[Program, Tag("Program")],
        Annotated[VariableDeclaration, Tag("VariableDeclaration")],
        Annotated[VariableDeclarator, Tag("VariableDeclarator")],
        Annotated[Literal, Tag("Literal")],
        Annotated[Identifier, Tag("Identifier")],
        Annotated[BinaryExpression, Tag("BinaryExpression")],
        Annotated[LogicalExpression, Tag("LogicalExpression")],
        Annotated[AssignmentExpression, Tag("AssignmentExpression")],
        Annotated[ExpressionStatement, Tag("ExpressionStatement")],
        Annotated[BlockStatement, Tag("BlockStatement")],
        Annotated[IfStatement, Tag("IfStatement")],
        Annotated[WhileStatement, Tag("WhileStatement")],
        Annotated[ForStatement, Tag("ForStatement")],
        Annotated[FunctionDeclaration, Tag("FunctionDeclaration")],
        Annotated[ReturnStatement, Tag("ReturnStatement")],
        Annotated[OpaqueNode, Tag(OPAQUE_TAG)],
    ],
    Discriminator(_node_tag),
]

for _cls in (*NODE_CLASSES.values(), OpaqueNode):
    _cls.model_rebuild()

_SYNTAX_ADAPTER: TypeAdapter = TypeAdapter(SyntaxNode)


def from_estree(data: dict[str, Any]) -> SyntaxNode:
    """Build a syntax tree from an ESTree (esprima-style) JSON dict."""
    try:
        return _SYNTAX_ADAPTER.validate_python(data)
    except RecursionError as exc:
        raise NestingTooDeep("syntax tree validation") from exc
    except ValidationError as exc:
        if any(err["type"] == "recursion_loop" for err in exc.errors()):
            raise NestingTooDeep("syntax tree validation") from exc
        raise SourceSyntaxError(
            f"malformed syntax tree: {exc.errors()[0]['msg']}"
        ) from exc
