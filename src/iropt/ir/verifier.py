from __future__ import annotations

from ..domain.errors import IRVerificationError
from .model import IRModule, Operation
from .registry import DialectRegistry


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


class Verifier:
    """Structural and registered-definition checks over an operation tree.

    Values follow lexical scoping: a result is visible to later operations of
    its region and to every region nested in them, never to the defining
    operation's own regions.
    """

    def __init__(self, registry: DialectRegistry) -> None:
        self.registry = registry

    def verify(self, module: IRModule) -> None:
        self._defined: set[str] = set()
        self._verify_operation(module.operation, visible=frozenset())

    def _verify_operation(self, op: Operation, visible: frozenset[str]) -> None:
        for operand in op.operands:
            if operand not in visible:
                raise IRVerificationError(f"'{op.name}' op uses undefined value '{operand}'", op.location)
        for key, value in op.attributes.items():
            if not isinstance(value, (str, int, bool)):
                raise IRVerificationError(
                    f"'{op.name}' op attribute '{key}' has unsupported value type '{type(value).__name__}'",
                    op.location,
                )
        self._verify_definition(op)
        for region in op.regions:
            scope = set(visible)
            for child in region.operations:
                self._verify_operation(child, frozenset(scope))
                for result in child.results:
                    if result in self._defined:
                        raise IRVerificationError(f"redefinition of SSA value '{result}'", child.location)
                    self._defined.add(result)
                    scope.add(result)

    def _verify_definition(self, op: Operation) -> None:
        dialect = self.registry.get(op.dialect)
        if dialect is None:
            return
        definition = dialect.operations.get(op.name)
        if definition is None:
            if dialect.allow_unknown_operations:
                return
            raise IRVerificationError(
                f"unregistered operation '{op.name}' found in dialect '{dialect.name}' "
                "that does not allow unknown operations",
                op.location,
            )
        checks = (
            ("operand", definition.num_operands, len(op.operands)),
            ("result", definition.num_results, len(op.results)),
            ("region", definition.num_regions, len(op.regions)),
        )
        for noun, expected, found in checks:
            if expected is not None and expected != found:
                raise IRVerificationError(
                    f"'{op.name}' op expected {_plural(expected, noun)}, but found {found}",
                    op.location,
                )
        for attribute in definition.required_attributes:
            if attribute not in op.attributes:
                raise IRVerificationError(f"'{op.name}' op requires attribute '{attribute}'", op.location)


def verify_module(module: IRModule, registry: DialectRegistry) -> None:
    Verifier(registry).verify(module)
