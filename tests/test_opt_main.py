import io

from iropt import ChunkState, OptConfig, VerbosityLevel, as_exit_code, default_registry, run_opt_main
from iropt.domain.errors import (
    BytecodeVersionUnsupportedError,
    ConfigurationError,
    IRPrintError,
    PipelinePopulationError,
    TransformVerificationError,
    UnregisteredDialectError,
)
from iropt.ir import decode_module, print_module
from iropt.passes import Pass


class BreakMarkedFuncPass(Pass):
    argument = "break-marked-func"

    def run(self, module, context):
        for op in module.walk():
            if op.attributes.get("broken"):
                op.operands.append("%undefined")


class FailingPass(Pass):
    argument = "always-fail"

    def run(self, module, context):
        context.emit_error(module.operation, "this pass always fails")
        context.signal_failure()


class FloatRatioPass(Pass):
    argument = "set-float-ratio"

    def run(self, module, context):
        for op in module.walk():
            if op.attributes.get("scaled"):
                op.attributes["ratio"] = 1.5


def _run(buffer, config, registry=None):
    output = io.BytesIO()
    diagnostics = io.StringIO()
    result = run_opt_main(output, buffer, registry or default_registry(), config, diagnostic_stream=diagnostics)
    return result, output.getvalue(), diagnostics.getvalue()


def _split_config():
    return OptConfig.builder().split_input_file().output_split_marker()


def test_chunks_are_parsed_and_printed_independently():
    result, output, diagnostics = _run("func () {}\n// -----\nfunc () {}\n", _split_config().build())
    assert result.succeeded
    assert as_exit_code(result) == 0
    assert [r.state for r in result.chunk_results] == [ChunkState.DONE, ChunkState.DONE]
    assert output.decode("utf-8") == "module {\n  func {}\n}\n// -----\nmodule {\n  func {}\n}\n"
    assert diagnostics == ""


def test_transform_verification_failure_is_confined_to_its_chunk():
    def setup(pass_manager):
        pass_manager.add(BreakMarkedFuncPass())
        return True

    config = _split_config().pass_pipeline_setup(setup).build()
    result, output, diagnostics = _run("func() [broken = true] {}\n// -----\nfunc() {}\n", config)

    broken, sibling = result.chunk_results
    assert broken.state == ChunkState.FAILED
    assert broken.failed_at == ChunkState.PIPELINE_POPULATED
    assert isinstance(broken.error, TransformVerificationError)
    assert broken.error.pass_name == "break-marked-func"
    assert sibling.state == ChunkState.DONE
    assert output.decode("utf-8") == "module {\n  func {}\n}\n"
    assert diagnostics == (
        "<stdin>:1:1: error: verification failed after pass 'break-marked-func': "
        "'func' op uses undefined value '%undefined'\n"
    )
    assert as_exit_code(result) == 1


def test_per_pass_verification_can_be_disabled():
    def setup(pass_manager):
        pass_manager.add(BreakMarkedFuncPass())
        return True

    config = OptConfig.builder().pass_pipeline_setup(setup).verify_passes(False).build()
    result, output, _ = _run("func() [broken = true] {}\n", config)
    assert result.succeeded
    assert output.decode("utf-8") == "module {\n  func(%undefined) [broken = true] {}\n}\n"


def test_unsupported_attribute_value_fails_per_pass_verification():
    def setup(pass_manager):
        pass_manager.add(FloatRatioPass())
        return True

    config = _split_config().pass_pipeline_setup(setup).build()
    result, output, diagnostics = _run("func() [scaled = true] {}\n// -----\nfunc() {}\n", config)

    scaled, sibling = result.chunk_results
    assert scaled.state == ChunkState.FAILED
    assert isinstance(scaled.error, TransformVerificationError)
    assert scaled.error.pass_name == "set-float-ratio"
    assert "attribute 'ratio' has unsupported value type 'float'" in diagnostics
    assert sibling.state == ChunkState.DONE
    assert output.decode("utf-8") == "module {\n  func {}\n}\n"
    assert as_exit_code(result) == 1


def test_unprintable_attribute_without_verification_fails_only_its_chunk():
    def setup(pass_manager):
        pass_manager.add(FloatRatioPass())
        return True

    config = _split_config().pass_pipeline_setup(setup).verify_passes(False).build()
    result, _, diagnostics = _run("func() [scaled = true] {}\n// -----\nfunc() {}\n", config)

    scaled, sibling = result.chunk_results
    assert isinstance(scaled.error, IRPrintError)
    assert "cannot print attribute value of type 'float'" in diagnostics
    assert sibling.state == ChunkState.DONE
    assert not result.succeeded


def test_population_runs_once_and_failure_is_fatal():
    calls = []

    def setup(pass_manager):
        calls.append(pass_manager)
        return len(calls) > 1

    config = _split_config().pass_pipeline_setup(setup).build()
    result, output, diagnostics = _run("func() {}\n// -----\nfunc() {}\n", config)
    assert len(calls) == 1
    assert isinstance(result.fatal_error, PipelinePopulationError)
    assert result.chunk_results == []
    assert output == b""
    assert diagnostics == "error: pipeline setup callback reported failure\n"
    assert as_exit_code(result) == 1


def test_raising_setup_and_unknown_textual_pass_are_population_errors():
    def setup(pass_manager):
        raise ValueError("bad wiring")

    result, _, _ = _run("func() {}\n", OptConfig.builder().pass_pipeline_setup(setup).build())
    assert isinstance(result.fatal_error, PipelinePopulationError)
    assert "bad wiring" in result.fatal_error.message

    result, _, diagnostics = _run("func() {}\n", OptConfig.builder().pass_pipeline("builtin.module(nope)").build())
    assert isinstance(result.fatal_error, PipelinePopulationError)
    assert "'nope' does not refer to a registered pass" in diagnostics


def test_listing_short_circuits_before_parsing():
    result, output, _ = _run("this is not IR", OptConfig.builder().list_passes().build())
    assert result.short_circuited
    assert result.succeeded
    assert result.chunk_results == []
    assert output.decode("utf-8").startswith("Available Passes:\n")
    assert "--dce" in output.decode("utf-8")

    result, output, _ = _run("this is not IR", OptConfig.builder().show_dialects().build())
    assert result.short_circuited
    assert output == b"Available Dialects: arith, builtin\n"


def test_dump_pass_pipeline_goes_to_diagnostics():
    config = OptConfig.builder().pass_pipeline("dce,strip-attributes{names=tag}").dump_pass_pipeline().build()
    result, output, diagnostics = _run('func() [tag = "x"] {}\n', config)
    assert result.succeeded
    assert diagnostics == "builtin.module(dce,strip-attributes{names=tag})\n"
    assert output.decode("utf-8") == "module {\n  func {}\n}\n"


def test_locations_refer_to_whole_buffer():
    result, output, diagnostics = _run("func() {}\n// -----\nfoo.bar()\n", _split_config().build())
    assert not result.succeeded
    assert isinstance(result.chunk_results[1].error, UnregisteredDialectError)
    assert result.chunk_results[1].failed_at == ChunkState.UNPARSED
    assert diagnostics.startswith("<stdin>:3:1: error: dialect 'foo' not found for operation 'foo.bar'")
    assert output.decode("utf-8") == "module {\n  func {}\n}\n"


def test_parse_verification_failure():
    result, _, diagnostics = _run("%c = arith.constant()\n", OptConfig())
    assert result.chunk_results[0].failed_at == ChunkState.PARSED
    assert "requires attribute 'value'" in diagnostics

    unchecked = OptConfig.builder().verify_on_parsing(False).build()
    result, output, _ = _run("%c = arith.constant()\n", unchecked)
    assert result.succeeded
    assert output.decode("utf-8") == "module {\n  %c = arith.constant\n}\n"


def test_expected_diagnostics_make_failing_chunk_pass():
    buffer = (
        "foo.bar() // expected-error {{dialect 'foo' not found}}\n"
        "// -----\n"
        "func() {}\n"
    )
    config = _split_config().verify_diagnostics().build()
    result, output, diagnostics = _run(buffer, config)
    assert result.succeeded
    assert diagnostics == ""
    assert output.decode("utf-8") == "module {\n  func {}\n}\n"


def test_expectation_mismatches_are_reported_together():
    buffer = (
        "func() {} // expected-error {{never happens}}\n"
        "func() {} // expected-warning {{also never}}\n"
    )
    result, _, diagnostics = _run(buffer, OptConfig.builder().verify_diagnostics().build())
    assert not result.succeeded
    assert len(result.chunk_results[0].mismatch.failures) == 2
    assert '<stdin>:1:11: error: expected error "never happens" was not produced' in diagnostics
    assert '<stdin>:2:11: error: expected warning "also never" was not produced' in diagnostics


def test_reported_pass_failure_is_not_duplicated():
    def setup(pass_manager):
        pass_manager.add(FailingPass())
        return True

    result, _, diagnostics = _run("func() {}\n", OptConfig.builder().pass_pipeline_setup(setup).build())
    assert not result.succeeded
    assert diagnostics == "<stdin>:1:1: error: this pass always fails\n"


def test_verbosity_filters_remarks():
    config = OptConfig.builder().pass_pipeline("print-op-stats")
    _, _, diagnostics = _run("func() {}\n", config.build())
    assert diagnostics == "<stdin>:1:1: remark: operation counts: func=1, module=1\n"
    _, _, diagnostics = _run("func() {}\n", config.verbosity(VerbosityLevel.ERRORS_AND_WARNINGS).build())
    assert diagnostics == ""


def test_fail_fast_skips_remaining_chunks():
    buffer = "func() {}\n// -----\nfoo.bar()\n// -----\nfunc() {}\n"
    result, output, _ = _run(buffer, _split_config().fail_fast().build())
    assert [r.state for r in result.chunk_results] == [ChunkState.DONE, ChunkState.FAILED, ChunkState.UNPARSED]
    assert output.decode("utf-8") == "module {\n  func {}\n}\n"

    result, output, _ = _run(buffer, _split_config().build())
    assert [r.state for r in result.chunk_results] == [ChunkState.DONE, ChunkState.FAILED, ChunkState.DONE]
    assert output.decode("utf-8") == "module {\n  func {}\n}\n// -----\nmodule {\n  func {}\n}\n"


def test_parallel_workers_preserve_chunk_order():
    buffer = "\n// -----\n".join(f"func() [id = {idx}] {{}}" for idx in range(8)) + "\n"
    sequential = _run(buffer, _split_config().build())
    parallel = _run(buffer, _split_config().max_workers(4).build())
    assert parallel[0].succeeded
    assert parallel[1] == sequential[1]
    assert parallel[1].decode("utf-8").split("// -----\n")[5] == "module {\n  func [id = 5] {}\n}\n"


def test_parallel_diagnostics_are_not_interleaved():
    chunks = [f"func() {{}}\nbad{idx}.op()\n" for idx in range(6)]
    result, _, diagnostics = _run("// -----\n".join(chunks), _split_config().max_workers(3).build())
    assert not result.succeeded
    lines = diagnostics.splitlines()
    assert [line.split("'")[1] for line in lines] == [f"bad{idx}" for idx in range(6)]


def test_inconsistent_config_is_rejected_before_processing():
    result, _, diagnostics = _run("func() {}\n", OptConfig.builder().bytecode_version(1).build())
    assert isinstance(result.fatal_error, ConfigurationError)
    assert "without emitting bytecode" in diagnostics

    result, _, _ = _run("func() {}\n", OptConfig.builder().max_workers(0).build())
    assert isinstance(result.fatal_error, ConfigurationError)


def test_bytecode_emission_and_version_rejection():
    result, output, _ = _run("func() [on = true] {}\n", OptConfig.builder().emit_bytecode().build())
    assert result.succeeded
    assert print_module(decode_module(output)) == "module {\n  func [on = true] {}\n}\n"

    pinned = OptConfig.builder().emit_bytecode().bytecode_version(1).build()
    result, output, diagnostics = _run("func() [on = true] {}\n", pinned)
    assert isinstance(result.chunk_results[0].error, BytecodeVersionUnsupportedError)
    assert output == b""
    assert "version 2 or later is required" in diagnostics


def test_pinned_version_rejection_survives_roundtrip_check():
    config = OptConfig.builder().emit_bytecode().bytecode_version(0).verify_roundtrip().build()
    result, output, diagnostics = _run("func [flag = true] {}\n", config)
    assert isinstance(result.chunk_results[0].error, BytecodeVersionUnsupportedError)
    assert output == b""
    assert "version 2 or later is required" in diagnostics
    assert "roundtrip" not in diagnostics
    assert as_exit_code(result) == 1


def test_roundtrip_verification_in_driver():
    config = OptConfig.builder().verify_roundtrip().pass_pipeline("dce").build()
    result, output, _ = _run('%c = arith.constant() [value = 1, s = "x y"]\nfunc() {}\n', config)
    assert result.succeeded
    assert output.decode("utf-8") == "module {\n  func {}\n}\n"


def test_irdl_file_extends_run_registry_only(tmp_path):
    irdl_path = tmp_path / "toy.irdl"
    irdl_path.write_text(
        'irdl.dialect [name = "toy"] {\n  irdl.operation [name = "print", operands = 1, results = 0]\n}\n',
        encoding="utf-8",
    )
    registry = default_registry()
    buffer = "%c = arith.constant() [value = 1]\ntoy.print(%c)\n"
    result, output, _ = _run(buffer, OptConfig.builder().irdl_file(str(irdl_path)).build(), registry)
    assert result.succeeded
    assert "toy.print(%c)" in output.decode("utf-8")
    assert "toy" not in registry

    result, _, _ = _run(buffer, OptConfig(), registry)
    assert isinstance(result.chunk_results[0].error, UnregisteredDialectError)

    result, _, _ = _run(buffer, OptConfig.builder().irdl_file(str(tmp_path / "missing.irdl")).build())
    assert isinstance(result.fatal_error, ConfigurationError)
