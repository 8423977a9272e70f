from __future__ import annotations

from collections import Counter

from ..ir.model import IRModule, Operation
from .pass_manager import Pass, PassContext
from .registry import PassRegistry


class DeadCodeEliminationPass(Pass):
    argument = "dce"
    description = "Erase pure operations whose results are never used"

    def run(self, module: IRModule, context: PassContext) -> None:
        changed = True
        while changed:
            used = {operand for op in module.walk() for operand in op.operands}
            changed = False
            for op in module.walk():
                for region in op.regions:
                    kept = [child for child in region.operations if not self._is_dead(child, used, context)]
                    if len(kept) != len(region.operations):
                        region.operations = kept
                        changed = True

    @staticmethod
    def _is_dead(op: Operation, used: set[str], context: PassContext) -> bool:
        if not op.results or op.regions:
            return False
        if any(result in used for result in op.results):
            return False
        definition = context.registry.lookup_operation(op.name)
        return definition is not None and definition.pure


class StripAttributesPass(Pass):
    argument = "strip-attributes"
    description = "Remove the attributes listed in 'names' (all attributes when omitted)"

    def run(self, module: IRModule, context: PassContext) -> None:
        names = {name.strip() for name in self.options.get("names", "").split(",") if name.strip()}
        for op in module.walk():
            if not names:
                op.attributes.clear()
                continue
            for name in names:
                op.attributes.pop(name, None)


class OpStatsPass(Pass):
    argument = "print-op-stats"
    description = "Emit a remark with the number of operations of each kind"

    def run(self, module: IRModule, context: PassContext) -> None:
        counts = Counter(op.name for op in module.walk())
        summary = ", ".join(f"{name}={count}" for name, count in sorted(counts.items()))
        context.emit_remark(module.operation, f"operation counts: {summary}")


def default_pass_registry() -> PassRegistry:
    registry = PassRegistry()
    for factory in (DeadCodeEliminationPass, StripAttributesPass, OpStatsPass):
        registry.register(factory)
    return registry
