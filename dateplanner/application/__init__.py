"""Application layer: generation orchestration and app context."""

from dateplanner.application.context import AppContext, make_app_context
from dateplanner.application.orchestrator import GenerationOrchestrator

__all__ = ["AppContext", "GenerationOrchestrator", "make_app_context"]
