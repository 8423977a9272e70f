from __future__ import annotations

from dataclasses import dataclass, field

from .model import BUILTIN_DIALECT, MODULE_OP


@dataclass(frozen=True)
class OpDefinition:
    name: str
    num_operands: int | None = None
    num_results: int | None = None
    num_regions: int | None = None
    required_attributes: tuple[str, ...] = ()
    pure: bool = False


@dataclass
class Dialect:
    name: str
    description: str = ""
    operations: dict[str, OpDefinition] = field(default_factory=dict)
    allow_unknown_operations: bool = False

    def add_operation(self, definition: OpDefinition) -> None:
        self.operations[definition.name] = definition


class DialectRegistry:
    """Name-indexed set of dialects the parser and verifier consult."""

    def __init__(self, dialects: list[Dialect] | None = None) -> None:
        self._dialects: dict[str, Dialect] = {}
        for dialect in dialects or []:
            self.insert(dialect)

    def insert(self, dialect: Dialect) -> None:
        self._dialects[dialect.name] = dialect

    def get(self, name: str) -> Dialect | None:
        return self._dialects.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._dialects

    def names(self) -> list[str]:
        return sorted(self._dialects)

    def lookup_operation(self, op_name: str) -> OpDefinition | None:
        prefix, sep, _ = op_name.partition(".")
        dialect = self._dialects.get(prefix if sep else BUILTIN_DIALECT)
        if dialect is None:
            return None
        return dialect.operations.get(op_name)

    def copy(self) -> DialectRegistry:
        clone = DialectRegistry()
        for dialect in self._dialects.values():
            clone.insert(
                Dialect(
                    name=dialect.name,
                    description=dialect.description,
                    operations=dict(dialect.operations),
                    allow_unknown_operations=dialect.allow_unknown_operations,
                )
            )
        return clone


def builtin_dialect() -> Dialect:
    dialect = Dialect(name=BUILTIN_DIALECT, description="Top-level container and function operations")
    dialect.add_operation(OpDefinition(MODULE_OP, num_operands=0, num_results=0, num_regions=1))
    dialect.add_operation(OpDefinition("func", num_operands=0, num_results=0, num_regions=1))
    dialect.add_operation(OpDefinition("return", num_results=0, num_regions=0))
    return dialect


def arith_dialect() -> Dialect:
    dialect = Dialect(name="arith", description="Integer arithmetic")
    dialect.add_operation(
        OpDefinition("arith.constant", num_operands=0, num_results=1, num_regions=0, required_attributes=("value",), pure=True)
    )
    for name in ("arith.addi", "arith.subi", "arith.muli"):
        dialect.add_operation(OpDefinition(name, num_operands=2, num_results=1, num_regions=0, pure=True))
    return dialect


def default_registry() -> DialectRegistry:
    return DialectRegistry([builtin_dialect(), arith_dialect()])
