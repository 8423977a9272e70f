from iropt.cli import build_parser, main


def test_main_splits_and_writes_output_file(tmp_path):
    source = tmp_path / "input.ir"
    source.write_text("func() {}\n// -----\n%c = arith.constant() [value = 1]\n", encoding="utf-8")
    target = tmp_path / "out" / "result.ir"

    code = main([str(source), "-o", str(target), "--pass-pipeline", "builtin.module(dce)", "--split-input-file", "--output-split-marker"])

    assert code == 0
    assert target.read_text(encoding="utf-8") == "module {\n  func {}\n}\n// -----\nmodule {}\n"


def test_main_reports_failures_with_exit_code(tmp_path, capsys):
    source = tmp_path / "input.ir"
    source.write_text("foo.bar()\n", encoding="utf-8")

    code = main([str(source), "-o", str(tmp_path / "out.ir")])

    assert code == 1
    assert f"{source}:1:1: error: dialect 'foo' not found" in capsys.readouterr().err


def test_main_missing_input_file(tmp_path, capsys):
    code = main([str(tmp_path / "absent.ir")])
    assert code == 1
    assert "[iropt] Failed to read" in capsys.readouterr().err


def test_main_verify_diagnostics_mode(tmp_path):
    source = tmp_path / "input.ir"
    source.write_text("foo.bar() // expected-error {{not found}}\n", encoding="utf-8")
    assert main([str(source), "-o", str(tmp_path / "out.ir"), "--verify-diagnostics"]) == 0


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.input == "-"
    assert args.output == "-"
    assert args.verify_each is True
    assert args.log_level == "WARNING"
