"""Translator and server configuration (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class TranslatorConfig:
    """Groups translation configuration."""

    backends: tuple[str, ...] = constants.DEFAULT_BACKENDS
    indent: str = constants.DEFAULT_INDENT


@dataclass(frozen=True)
class ServerConfig:
    """Groups HTTP endpoint configuration."""

    host: str = constants.DEFAULT_HOST
    port: int = constants.DEFAULT_PORT
    allow_origin: str = constants.DEFAULT_ALLOW_ORIGIN
    translator: TranslatorConfig = TranslatorConfig()
