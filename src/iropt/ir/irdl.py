from __future__ import annotations

import logging
from pathlib import Path

from ..domain.errors import ConfigurationError, OptDriverError
from .model import Operation
from .parser import parse_source
from .registry import Dialect, DialectRegistry, OpDefinition

logger = logging.getLogger(__name__)

IRDL_DIALECT = "irdl"


def _irdl_registry() -> DialectRegistry:
    dialect = Dialect(name=IRDL_DIALECT, description="Dialect definition language")
    dialect.add_operation(OpDefinition("irdl.dialect", num_operands=0, num_results=0, num_regions=1, required_attributes=("name",)))
    dialect.add_operation(OpDefinition("irdl.operation", num_operands=0, num_results=0, num_regions=0, required_attributes=("name",)))
    return DialectRegistry([dialect])


def _optional_count(op: Operation, key: str) -> int | None:
    value = op.attributes.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"'{key}' of '{op.attributes['name']}' must be a non-negative integer", op.location)
    return value


def _operation_definition(dialect_name: str, op: Operation) -> OpDefinition:
    if op.name != "irdl.operation" or "name" not in op.attributes:
        raise ConfigurationError(f"expected 'irdl.operation' with a name inside dialect '{dialect_name}'", op.location)
    attributes = op.attributes.get("attributes", "")
    return OpDefinition(
        name=f"{dialect_name}.{op.attributes['name']}",
        num_operands=_optional_count(op, "operands"),
        num_results=_optional_count(op, "results"),
        num_regions=_optional_count(op, "regions"),
        required_attributes=tuple(part.strip() for part in str(attributes).split(",") if part.strip()),
        pure=bool(op.attributes.get("pure", False)),
    )


def load_irdl_text(text: str, registry: DialectRegistry, *, filename: str = "<irdl>") -> list[str]:
    try:
        module = parse_source(text, _irdl_registry(), filename=filename)
    except OptDriverError as exc:
        raise ConfigurationError(f"failed to parse IRDL file: {exc}", exc.location) from exc

    loaded: list[str] = []
    for op in module.operation.regions[0].operations:
        if op.name != "irdl.dialect" or not isinstance(op.attributes.get("name"), str):
            raise ConfigurationError("expected 'irdl.dialect' with a string name at the top level", op.location)
        dialect = Dialect(
            name=str(op.attributes["name"]),
            description=str(op.attributes.get("description", "")),
            allow_unknown_operations=bool(op.attributes.get("allow_unknown", False)),
        )
        for child in (op.regions[0].operations if op.regions else []):
            dialect.add_operation(_operation_definition(dialect.name, child))
        registry.insert(dialect)
        loaded.append(dialect.name)
        logger.debug("Registered IRDL dialect %s with %d operation(s)", dialect.name, len(dialect.operations))
    return loaded


def load_irdl_file(path: str | Path, registry: DialectRegistry) -> list[str]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read IRDL file '{path}': {exc}") from exc
    return load_irdl_text(text, registry, filename=str(path))
