"""SIL translator — JavaScript subset → SIL → Python / C++."""

from .api import (
    TranslationResult,
    dump_ir,
    lower_source,
    parse_source,
    render_source,
    translate,
    translate_estree,
    translate_source,
)
from .errors import (
    InvalidAssignmentTarget,
    MalformedControlFlow,
    NestingTooDeep,
    SourceSyntaxError,
    TranslationError,
    UnsupportedConstruct,
    UnsupportedOperator,
)

__all__ = [
    "TranslationResult",
    "dump_ir",
    "lower_source",
    "parse_source",
    "render_source",
    "translate",
    "translate_estree",
    "translate_source",
    "TranslationError",
    "UnsupportedConstruct",
    "UnsupportedOperator",
    "InvalidAssignmentTarget",
    "MalformedControlFlow",
    "SourceSyntaxError",
    "NestingTooDeep",
]
