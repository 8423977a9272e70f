from .cli_options import config_from_cli_options, register_cli_options
from .opt_config import (
    DEFAULT_SPLIT_MARKER,
    CallbackPipeline,
    NoPipeline,
    OptConfig,
    OptConfigBuilder,
    PipelineSource,
    TextualPipeline,
    VerbosityLevel,
    VerifyDiagnosticsLevel,
)

__all__ = [
    "DEFAULT_SPLIT_MARKER",
    "CallbackPipeline",
    "NoPipeline",
    "OptConfig",
    "OptConfigBuilder",
    "PipelineSource",
    "TextualPipeline",
    "VerbosityLevel",
    "VerifyDiagnosticsLevel",
    "config_from_cli_options",
    "register_cli_options",
]
