import argparse
import dataclasses

import pytest

from iropt.config import (
    DEFAULT_SPLIT_MARKER,
    CallbackPipeline,
    NoPipeline,
    OptConfig,
    TextualPipeline,
    VerbosityLevel,
    VerifyDiagnosticsLevel,
    config_from_cli_options,
    register_cli_options,
)


def test_defaults_are_safe_choices():
    config = OptConfig()
    assert config.verify_passes is True
    assert config.verify_on_parsing is True
    assert config.show_notes is False
    assert config.verify_roundtrip is False
    assert config.use_explicit_module is False
    assert config.emit_bytecode is False
    assert config.bytecode_version is None
    assert config.verify_diagnostics == VerifyDiagnosticsLevel.OFF
    assert config.pipeline == NoPipeline()
    assert config.max_workers == 1


def test_builder_setters_chain_and_last_write_wins():
    builder = OptConfig.builder()
    assert builder.show_notes() is builder
    config = (
        builder.verbosity(VerbosityLevel.ERRORS_ONLY)
        .verbosity(VerbosityLevel.ERRORS_AND_WARNINGS)
        .split_input_file()
        .verify_diagnostics("strict")
        .build()
    )
    assert config.verbosity == VerbosityLevel.ERRORS_AND_WARNINGS
    assert config.show_notes is True
    assert config.input_split_marker == DEFAULT_SPLIT_MARKER
    assert config.verify_diagnostics == VerifyDiagnosticsLevel.STRICT
    assert config.should_verify_diagnostics


def test_pipeline_setup_is_stored_not_invoked():
    calls = []

    def setup(pass_manager):
        calls.append(pass_manager)
        return True

    config = OptConfig.builder().pass_pipeline("dce").pass_pipeline_setup(setup).build()
    assert isinstance(config.pipeline, CallbackPipeline)
    assert config.pipeline.setup is setup
    assert calls == []


def test_built_config_is_immutable_and_rebuildable():
    config = OptConfig.builder().max_workers(4).build()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.max_workers = 2  # type: ignore[misc]
    changed = config.to_builder().fail_fast().build()
    assert changed.max_workers == 4
    assert changed.fail_fast is True
    assert config.fail_fast is False


def test_config_from_cli_options():
    parser = register_cli_options(argparse.ArgumentParser())
    args = parser.parse_args(
        [
            "--split-input-file",
            "--verify-diagnostics",
            "--no-verify-each",
            "--diagnostic-verbosity",
            "errors",
            "--pass-pipeline",
            "builtin.module(dce)",
            "--emit-bytecode",
            "--emit-bytecode-version",
            "1",
        ]
    )
    config = config_from_cli_options(args)
    assert config.input_split_marker == DEFAULT_SPLIT_MARKER
    assert config.output_split_marker == ""
    assert config.verify_diagnostics == VerifyDiagnosticsLevel.BASIC
    assert config.verify_passes is False
    assert config.verify_on_parsing is True
    assert config.verbosity == VerbosityLevel.ERRORS_ONLY
    assert config.pipeline == TextualPipeline("builtin.module(dce)")
    assert config.emit_bytecode is True
    assert config.bytecode_version == 1


def test_cli_custom_split_marker():
    parser = register_cli_options(argparse.ArgumentParser())
    config = config_from_cli_options(parser.parse_args(["--split-input-file", "#---", "--output-split-marker", "#==="]))
    assert config.input_split_marker == "#---"
    assert config.output_split_marker == "#==="
    assert config.pipeline == NoPipeline()
