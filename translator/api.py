"""Composable API functions for the SIL translation pipeline.

Each function corresponds to a CLI workflow (--ir-only, --backend, --json)
but is callable programmatically without argparse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .backends import get_backend
from .config import TranslatorConfig
from .frontend import JavaScriptSyntaxBuilder
from .ir import IRInstruction, format_sil
from .lowering import lower
from .parser import Parser, TreeSitterParserFactory
from .syntax import SyntaxNode, from_estree
from . import constants

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = TranslatorConfig()


@dataclass(frozen=True)
class TranslationResult:
    """Everything one translation produced; built only on full success."""

    instructions: tuple[IRInstruction, ...]
    sil: str
    outputs: dict[str, str] = field(default_factory=dict)

    @property
    def python(self) -> str:
        return self.outputs[constants.BACKEND_PYTHON]

    @property
    def cpp(self) -> str:
        return self.outputs[constants.BACKEND_CPP]

    def to_payload(self) -> dict[str, Any]:
        return {constants.SIL_PAYLOAD_KEY: self.sil, **self.outputs}


def parse_source(source: str) -> SyntaxNode:
    """Parse JavaScript source text into a syntax tree.

    Args:
        source: The JavaScript source text.

    Returns:
        The ``Program`` node of the tree.

    Raises:
        SourceSyntaxError: if tree-sitter reports a parse error.
    """
    logger.info("Parsing source (%d bytes)", len(source))
    parsed = Parser(TreeSitterParserFactory(), constants.SOURCE_LANGUAGE).parse(source)
    return JavaScriptSyntaxBuilder().build(parsed)


def lower_source(source: str) -> list[IRInstruction]:
    """Parse and lower source code to SIL instructions.

    Args:
        source: The JavaScript source text.

    Returns:
        A list of SIL instructions.
    """
    return lower(parse_source(source))


def dump_ir(source: str) -> str:
    """Lower source to SIL and return the text form, one instruction per line."""
    return format_sil(lower_source(source))


def render_source(source: str, backend: str, config: TranslatorConfig = DEFAULT_CONFIG) -> str:
    """Translate source and render it with a single backend.

    Args:
        source: The JavaScript source text.
        backend: Backend name (e.g. "python", "cpp").
        config: Translator configuration; only ``indent`` is used.

    Returns:
        The rendered target-language text.
    """
    instructions = lower_source(source)
    return get_backend(backend, indent=config.indent).render(instructions)


def translate(
    tree: SyntaxNode,
    backends: tuple[str, ...] | None = None,
    config: TranslatorConfig = DEFAULT_CONFIG,
) -> TranslationResult:
    """Lower a syntax tree once and render it with every requested backend.

    Args:
        tree: Root of the syntax tree (normally a ``Program``).
        backends: Backend names to render; defaults to ``config.backends``.
        config: Translator configuration.

    Returns:
        A TranslationResult with the instructions, their SIL text and one
        output per backend.

    Raises:
        TranslationError: on the first unsupported construct or malformed
            control flow; nothing partial is returned.
        ValueError: for an unknown backend name.
    """
    names = tuple(backends) if backends is not None else config.backends
    renderers = [get_backend(name, indent=config.indent) for name in names]
    logger.info("Translating %s (backends=%s)", tree.type, ", ".join(names))
    instructions = tuple(lower(tree))
    outputs = {
        name: renderer.render(instructions) for name, renderer in zip(names, renderers)
    }
    return TranslationResult(
        instructions=instructions, sil=format_sil(instructions), outputs=outputs
    )


def translate_source(
    source: str,
    backends: tuple[str, ...] | None = None,
    config: TranslatorConfig = DEFAULT_CONFIG,
) -> TranslationResult:
    """Parse JavaScript source and translate it; see ``translate``."""
    return translate(parse_source(source), backends, config)


def translate_estree(
    ast: dict[str, Any],
    backends: tuple[str, ...] | None = None,
    config: TranslatorConfig = DEFAULT_CONFIG,
) -> TranslationResult:
    """Translate an ESTree (esprima-style) JSON tree; see ``translate``."""
    return translate(from_estree(ast), backends, config)
