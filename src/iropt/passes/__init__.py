from .builtin import DeadCodeEliminationPass, OpStatsPass, StripAttributesPass, default_pass_registry
from .pass_manager import Pass, PassContext, PassManager
from .registry import PassInfo, PassRegistry, parse_pipeline, populate_from_text

__all__ = [
    "DeadCodeEliminationPass",
    "OpStatsPass",
    "Pass",
    "PassContext",
    "PassInfo",
    "PassManager",
    "PassRegistry",
    "StripAttributesPass",
    "default_pass_registry",
    "parse_pipeline",
    "populate_from_text",
]
