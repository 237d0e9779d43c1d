"""Application composition root.

This module wires together configuration and the knowledge base for the compiler runtime.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.config.settings import Settings
from src.intent.compiler import compile_query
from src.intent.schema import SearchIntent
from src.knowledge.base import KnowledgeBase, build_knowledge_base


@dataclass(frozen=True)
class App:
    """Shared, read-only dependencies for compile calls."""

    settings: Settings
    knowledge_base: KnowledgeBase

    def compile(self, text: str, available_diets: frozenset[str] | None = None) -> SearchIntent:
        """Compile one query with the configured diets and engine switch."""

        diets = self.settings.available_diets if available_diets is None else available_diets
        return compile_query(
            text,
            self.knowledge_base,
            frozenset(diets),
            use_constraint_engine=self.settings.constraint_engine_enabled,
        )


def create_app(settings: Settings) -> App:
    """Create the application container.

    Raises:
        KnowledgeBaseError: If the configured synonyms file cannot be loaded.
    """

    knowledge_base = build_knowledge_base(synonyms_path=settings.synonyms_path)
    return App(settings=settings, knowledge_base=knowledge_base)
