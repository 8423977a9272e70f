from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Iterator

from ..domain.models import UNKNOWN_LOCATION, SourceLocation

BUILTIN_DIALECT = "builtin"
MODULE_OP = "module"

AttributeValue = str | int | bool


@dataclass
class Region:
    operations: list[Operation] = field(default_factory=list)


@dataclass
class Operation:
    name: str
    operands: list[str] = field(default_factory=list)
    results: list[str] = field(default_factory=list)
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    regions: list[Region] = field(default_factory=list)
    location: SourceLocation = UNKNOWN_LOCATION

    @property
    def dialect(self) -> str:
        prefix, sep, _ = self.name.partition(".")
        return prefix if sep else BUILTIN_DIALECT

    def walk(self) -> Iterator[Operation]:
        yield self
        for region in self.regions:
            for op in region.operations:
                yield from op.walk()


@dataclass
class IRModule:
    """Top-level operation of a parsed chunk plus its trailing resource section."""

    operation: Operation
    resources: dict[str, str] = field(default_factory=dict)

    def clone(self) -> IRModule:
        return copy.deepcopy(self)

    def walk(self) -> Iterator[Operation]:
        return self.operation.walk()


def _same_attributes(left: dict[str, AttributeValue], right: dict[str, AttributeValue]) -> bool:
    if left.keys() != right.keys():
        return False
    # bool is an int subclass, so compare the types too.
    return all(type(left[key]) is type(right[key]) and left[key] == right[key] for key in left)


def first_difference(left: Operation, right: Operation) -> tuple[Operation, str] | None:
    """Return the first op of ``left`` that differs structurally from ``right``.

    Locations are ignored; attribute order is ignored.
    """
    if left.name != right.name:
        return left, f"operation name '{left.name}' != '{right.name}'"
    if left.results != right.results:
        return left, f"results {left.results} != {right.results}"
    if left.operands != right.operands:
        return left, f"operands {left.operands} != {right.operands}"
    if not _same_attributes(left.attributes, right.attributes):
        return left, f"attributes {left.attributes} != {right.attributes}"
    if len(left.regions) != len(right.regions):
        return left, f"{len(left.regions)} region(s) != {len(right.regions)}"
    for index, (left_region, right_region) in enumerate(zip(left.regions, right.regions)):
        if len(left_region.operations) != len(right_region.operations):
            return left, (
                f"region #{index} holds {len(left_region.operations)} operation(s) "
                f"!= {len(right_region.operations)}"
            )
        for left_op, right_op in zip(left_region.operations, right_region.operations):
            found = first_difference(left_op, right_op)
            if found is not None:
                return found
    return None


def first_module_difference(left: IRModule, right: IRModule) -> tuple[Operation, str] | None:
    found = first_difference(left.operation, right.operation)
    if found is not None:
        return found
    if left.resources != right.resources:
        return left.operation, f"resources {sorted(left.resources)} != {sorted(right.resources)}"
    return None
