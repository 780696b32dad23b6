"""Language registry handing out one parser per language to a scan run.

A parser class is registered under a language name together with the
file suffixes it handles; :meth:`ParserFactory.for_path` then resolves a
file to its parser.  Instances are built lazily and shared, so parsers
must be safe to call from several worker threads (the JavaScript parser
keeps one tree-sitter parser per thread).
"""

from __future__ import annotations

import pathlib
import threading
from typing import Iterable, Optional, Type

import structlog

from jsdepgraph.parsers.base import BaseLanguageParser

logger = structlog.get_logger(__name__)


class ParserFactory:
    """Maps language names and file suffixes to shared parser instances.

    Usage::

        factory = ParserFactory(repo_root)
        factory.register("javascript", JavaScriptParser, extensions=[".js"])
        parser = factory.for_path(pathlib.Path("lib/util.js"))

    Args:
        repo_root: Repository root handed to every parser instance.
    """

    def __init__(self, repo_root: pathlib.Path) -> None:
        self._repo_root = repo_root.resolve()
        self._classes: dict[str, Type[BaseLanguageParser]] = {}
        self._suffixes: dict[str, str] = {}
        self._instances: dict[str, BaseLanguageParser] = {}
        self._lock = threading.Lock()

    def register(
        self,
        language: str,
        parser_cls: Type[BaseLanguageParser],
        extensions: Iterable[str] = (),
    ) -> None:
        """Register *parser_cls* for *language* and its file *extensions*.

        Re-registering a language drops any instance already built for it.
        """
        with self._lock:
            self._classes[language] = parser_cls
            self._instances.pop(language, None)
            for ext in extensions:
                self._suffixes[ext.lower()] = language
        logger.debug("parser_registered", language=language, cls=parser_cls.__name__)

    def get(self, language: str) -> Optional[BaseLanguageParser]:
        """Return the shared parser for *language*, or ``None``."""
        with self._lock:
            instance = self._instances.get(language)
            if instance is not None:
                return instance
            cls = self._classes.get(language)
            if cls is None:
                logger.warning("no_parser_registered", language=language)
                return None
            instance = self._instances[language] = cls(self._repo_root)
            return instance

    def language_for(self, path: pathlib.Path) -> Optional[str]:
        with self._lock:
            return self._suffixes.get(path.suffix.lower())

    def for_path(self, path: pathlib.Path) -> Optional[BaseLanguageParser]:
        """Return the parser handling *path*'s suffix, or ``None``."""
        language = self.language_for(path)
        return self.get(language) if language is not None else None

    @property
    def supported_languages(self) -> list[str]:
        return sorted(self._classes)

    @property
    def supported_extensions(self) -> list[str]:
        return sorted(self._suffixes)
