from __future__ import annotations

import re

from ..domain.errors import IRPrintError
from ..domain.models import UNKNOWN_LOCATION, SourceLocation
from .model import AttributeValue, IRModule, Operation

INDENT = "  "
IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.$]*$")


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\t", "\\t")
    return f'"{escaped}"'


def format_attribute(value: AttributeValue, location: SourceLocation = UNKNOWN_LOCATION) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return _quote(value)
    raise IRPrintError(f"cannot print attribute value of type '{type(value).__name__}'", location)


def _format_head(op: Operation) -> str:
    head = ""
    if op.results:
        head = ", ".join(op.results) + " = "
    head += op.name
    if op.operands:
        head += f"({', '.join(op.operands)})"
    if op.attributes:
        attrs = ", ".join(f"{key} = {format_attribute(value, op.location)}" for key, value in op.attributes.items())
        head += f" [{attrs}]"
    return head


def format_operation(op: Operation, indent: int = 0) -> str:
    pad = INDENT * indent
    parts = [pad + _format_head(op)]
    for region in op.regions:
        if not region.operations:
            parts.append(" {}")
            continue
        body = "\n".join(format_operation(child, indent + 1) for child in region.operations)
        parts.append(" {\n" + body + "\n" + pad + "}")
    return "".join(parts)


def _format_key(key: str) -> str:
    return key if IDENT_RE.match(key) else _quote(key)


def format_resources(resources: dict[str, str]) -> str:
    entries = ",\n".join(f"{INDENT}{_format_key(key)}: {_quote(value)}" for key, value in resources.items())
    return "{-#\n" + entries + "\n#-}"


def print_module(module: IRModule) -> str:
    text = format_operation(module.operation) + "\n"
    if module.resources:
        text += "\n" + format_resources(module.resources) + "\n"
    return text
