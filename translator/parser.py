"""Source parsing — JavaScript text to a tree-sitter concrete syntax tree."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from . import constants

logger = logging.getLogger(__name__)


class ParserFactory(ABC):
    """Hands out a tree-sitter parser for a grammar name."""

    @abstractmethod
    def get_parser(self, language: str): ...


class TreeSitterParserFactory(ParserFactory):
    """Loads grammars from tree-sitter-language-pack, one parser per grammar."""

    def __init__(self):
        self._parsers: dict[str, Any] = {}

    def get_parser(self, language: str):
        if language not in self._parsers:
            import tree_sitter_language_pack as tslp

            logger.debug("Loading %s grammar", language)
            self._parsers[language] = tslp.get_parser(language)
        return self._parsers[language]


@dataclass(frozen=True)
class ParsedSource:
    """A concrete tree together with the exact bytes it was parsed from."""

    tree: Any
    source: bytes

    @property
    def has_error(self) -> bool:
        return self.tree.root_node.has_error


class Parser:
    """Parses source text in one grammar using whatever factory it is given."""

    def __init__(
        self, parser_factory: ParserFactory, language: str = constants.SOURCE_LANGUAGE
    ):
        self._factory = parser_factory
        self._language = language

    def parse(self, source: str) -> ParsedSource:
        encoded = source.encode("utf-8")
        tree = self._factory.get_parser(self._language).parse(encoded)
        return ParsedSource(tree=tree, source=encoded)
