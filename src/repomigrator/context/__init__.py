"""Repository context package."""

from repomigrator.context.builder import assemble_context
from repomigrator.context.types import AssembledContext, ContextBudget, ContextFile

__all__ = ["AssembledContext", "ContextBudget", "ContextFile", "assemble_context"]
