import pytest

from iropt.domain.errors import IRPrintError, IRSyntaxError, IRVerificationError, UnregisteredDialectError
from iropt.ir import IRModule, Operation, Region, default_registry, load_irdl_text, parse_source, print_module, verify_module
from iropt.ir.model import MODULE_OP
from iropt.ir.printer import format_attribute


def test_implicit_module_wraps_and_prints_canonically():
    module = parse_source("%c = arith.constant()[value=4]\nfunc () {\n  return()\n}\n", default_registry())
    assert module.operation.name == MODULE_OP
    assert print_module(module) == (
        "module {\n"
        "  %c = arith.constant [value = 4]\n"
        "  func {\n"
        "    return\n"
        "  }\n"
        "}\n"
    )


def test_single_module_is_not_wrapped_twice():
    module = parse_source("module {\n  func() {}\n}\n", default_registry())
    assert [op.name for op in module.walk()] == ["module", "func"]


def test_explicit_module_requires_single_top_level_op():
    registry = default_registry()
    with pytest.raises(IRSyntaxError, match="single top-level operation"):
        parse_source("func() {}\nfunc() {}\n", registry, use_explicit_module=True)
    module = parse_source("func() {}\n", registry, use_explicit_module=True)
    assert module.operation.name == "func"


def test_unregistered_dialect_rejected_with_buffer_location():
    with pytest.raises(UnregisteredDialectError) as excinfo:
        parse_source("\nfoo.bar()\n", default_registry(), filename="in.ir", line_offset=10)
    assert excinfo.value.dialect == "foo"
    assert str(excinfo.value.location) == "in.ir:12:1"


def test_unregistered_dialect_allowed_on_request():
    module = parse_source("%x = foo.bar() [flag = true]\n", default_registry(), allow_unregistered_dialects=True)
    op = module.operation.regions[0].operations[0]
    assert op.name == "foo.bar"
    assert op.attributes == {"flag": True}
    verify_module(module, default_registry())


def test_syntax_errors_carry_locations():
    with pytest.raises(IRSyntaxError) as excinfo:
        parse_source("func(\n", default_registry(), filename="in.ir")
    assert excinfo.value.location.filename == "in.ir"
    with pytest.raises(IRSyntaxError, match="unexpected character"):
        parse_source("func() ? {}\n", default_registry())


def test_resources_section_roundtrips_through_printer():
    text = 'func() {}\n\n{-#\n  blob: "a\\"b",\n  "odd key": "x"\n#-}\n'
    module = parse_source(text, default_registry())
    assert module.resources == {"blob": 'a"b', "odd key": "x"}
    assert print_module(module) == 'module {\n  func {}\n}\n\n{-#\n  blob: "a\\"b",\n  "odd key": "x"\n#-}\n'


@pytest.mark.parametrize(
    ("source", "message"),
    [
        ("%x = arith.addi(%a, %b)\n", "uses undefined value '%a'"),
        ("%c = arith.constant()\n", "requires attribute 'value'"),
        ("func() {} {}\n", "'func' op expected 1 region, but found 2"),
        ("%c = arith.constant() [value = 1]\n%c = arith.constant() [value = 2]\n", "redefinition of SSA value '%c'"),
        ("arith.frobnicate()\n", "unregistered operation 'arith.frobnicate'"),
    ],
)
def test_verifier_rejects_invalid_structure(source, message):
    module = parse_source(source, default_registry())
    with pytest.raises(IRVerificationError, match=message):
        verify_module(module, default_registry())


def test_values_are_visible_in_nested_regions_only_after_definition():
    registry = default_registry()
    verify_module(parse_source("%a = arith.constant() [value = 1]\nfunc() {\n  %b = arith.addi(%a, %a)\n}\n", registry), registry)
    with pytest.raises(IRVerificationError):
        verify_module(parse_source("func() {\n  %b = arith.addi(%a, %a)\n}\n%a = arith.constant() [value = 1]\n", registry), registry)


def test_irdl_registers_dialect():
    registry = default_registry()
    loaded = load_irdl_text(
        'irdl.dialect [name = "toy"] {\n'
        '  irdl.operation [name = "print", operands = 1, results = 0, regions = 0]\n'
        '  irdl.operation [name = "const", results = 1, attributes = "value", pure = true]\n'
        "}\n",
        registry,
    )
    assert loaded == ["toy"]
    assert registry.lookup_operation("toy.const").pure is True
    module = parse_source("%c = toy.const() [value = 3]\ntoy.print(%c)\n", registry)
    verify_module(module, registry)
    with pytest.raises(IRVerificationError, match="expected 1 operand"):
        verify_module(parse_source("toy.print()\n", registry), registry)


def test_verifier_rejects_attribute_values_the_printer_cannot_spell():
    func = Operation("func", attributes={"ratio": 1.5}, regions=[Region()])
    module = IRModule(Operation(MODULE_OP, regions=[Region([func])]))
    with pytest.raises(IRVerificationError, match="attribute 'ratio' has unsupported value type 'float'"):
        verify_module(module, default_registry())
    with pytest.raises(IRPrintError, match="type 'float'"):
        format_attribute(1.5)
