"""Compact binary encoding of an :class:`IRModule`.

Layout: magic, version, string table, top-level operation, and (from version
1 on) the resource section. Integers are unsigned LEB128; signed attribute
values are zigzag-encoded first.
"""

from __future__ import annotations

from ..domain.errors import BytecodeError, BytecodeVersionUnsupportedError
from ..domain.models import SourceLocation
from .model import IRModule, Operation, Region

MAGIC = b"IRBC"
MIN_VERSION = 0
VERSION_RESOURCES = 1
VERSION_BOOL_ATTRIBUTES = 2
CURRENT_VERSION = 2

ATTR_STRING = 0
ATTR_INTEGER = 1
ATTR_BOOL = 2

RESOURCE_PRESENT = 0
RESOURCE_ELIDED = 1


def _write_varint(out: bytearray, value: int) -> None:
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return


def _zigzag(value: int) -> int:
    return value * 2 if value >= 0 else -value * 2 - 1


def _unzigzag(value: int) -> int:
    return value // 2 if value % 2 == 0 else -(value + 1) // 2


def required_version(module: IRModule) -> int:
    if any(isinstance(value, bool) for op in module.walk() for value in op.attributes.values()):
        return VERSION_BOOL_ATTRIBUTES
    if module.resources:
        return VERSION_RESOURCES
    return MIN_VERSION


class _Encoder:
    def __init__(self, version: int, elide_resources: bool) -> None:
        self.version = version
        self.elide_resources = elide_resources
        self.strings: dict[str, int] = {}
        self.body = bytearray()

    def intern(self, value: str) -> int:
        if value not in self.strings:
            self.strings[value] = len(self.strings)
        return self.strings[value]

    def encode(self, module: IRModule) -> bytes:
        self._operation(module.operation)
        if self.version >= VERSION_RESOURCES:
            _write_varint(self.body, len(module.resources))
            for key, value in module.resources.items():
                _write_varint(self.body, self.intern(key))
                if self.elide_resources:
                    self.body.append(RESOURCE_ELIDED)
                else:
                    self.body.append(RESOURCE_PRESENT)
                    _write_varint(self.body, self.intern(value))

        out = bytearray(MAGIC)
        _write_varint(out, self.version)
        _write_varint(out, len(self.strings))
        for value in self.strings:
            raw = value.encode("utf-8")
            _write_varint(out, len(raw))
            out.extend(raw)
        out.extend(self.body)
        return bytes(out)

    def _operation(self, op: Operation) -> None:
        body = self.body
        _write_varint(body, self.intern(op.name))
        _write_varint(body, self.intern(op.location.filename))
        _write_varint(body, op.location.line)
        _write_varint(body, op.location.column)
        for values in (op.results, op.operands):
            _write_varint(body, len(values))
            for value in values:
                _write_varint(body, self.intern(value))
        _write_varint(body, len(op.attributes))
        for key, value in op.attributes.items():
            _write_varint(body, self.intern(key))
            if isinstance(value, bool):
                body.append(ATTR_BOOL)
                body.append(1 if value else 0)
            elif isinstance(value, int):
                body.append(ATTR_INTEGER)
                _write_varint(body, _zigzag(value))
            elif isinstance(value, str):
                body.append(ATTR_STRING)
                _write_varint(body, self.intern(value))
            else:
                raise BytecodeError(
                    f"cannot encode attribute '{key}' of type '{type(value).__name__}'", op.location
                )
        _write_varint(body, len(op.regions))
        for region in op.regions:
            _write_varint(body, len(region.operations))
            for child in region.operations:
                self._operation(child)


def encode_module(module: IRModule, *, version: int | None = None, elide_resources: bool = False) -> bytes:
    if version is None:
        version = CURRENT_VERSION
    if version < MIN_VERSION or version > CURRENT_VERSION:
        raise BytecodeVersionUnsupportedError(
            f"unsupported bytecode version {version} requested, must be in range [{MIN_VERSION}, {CURRENT_VERSION}]",
            module.operation.location,
        )
    needed = required_version(module)
    if version < needed:
        feature = "boolean attributes" if needed == VERSION_BOOL_ATTRIBUTES else "resources"
        raise BytecodeVersionUnsupportedError(
            f"cannot encode {feature} at bytecode version {version}, version {needed} or later is required",
            module.operation.location,
        )
    return _Encoder(version, elide_resources).encode(module)


class _Decoder:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.pos = 0
        self.strings: list[str] = []

    def varint(self) -> int:
        result = 0
        shift = 0
        while True:
            if self.pos >= len(self.data):
                raise BytecodeError("unexpected end of bytecode")
            byte = self.data[self.pos]
            self.pos += 1
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result
            shift += 7

    def byte(self) -> int:
        if self.pos >= len(self.data):
            raise BytecodeError("unexpected end of bytecode")
        value = self.data[self.pos]
        self.pos += 1
        return value

    def string(self) -> str:
        index = self.varint()
        if index >= len(self.strings):
            raise BytecodeError(f"string index {index} out of range")
        return self.strings[index]

    def decode(self) -> IRModule:
        if not self.data.startswith(MAGIC):
            raise BytecodeError("input is not bytecode: bad magic number")
        self.pos = len(MAGIC)
        version = self.varint()
        if version > CURRENT_VERSION:
            raise BytecodeVersionUnsupportedError(f"bytecode version {version} is newer than supported {CURRENT_VERSION}")
        for _ in range(self.varint()):
            length = self.varint()
            raw = self.data[self.pos : self.pos + length]
            if len(raw) != length:
                raise BytecodeError("unexpected end of bytecode")
            self.strings.append(raw.decode("utf-8"))
            self.pos += length
        operation = self.operation()
        resources: dict[str, str] = {}
        if version >= VERSION_RESOURCES:
            for _ in range(self.varint()):
                key = self.string()
                resources[key] = self.string() if self.byte() == RESOURCE_PRESENT else ""
        if self.pos != len(self.data):
            raise BytecodeError("trailing bytes after bytecode module")
        return IRModule(operation, resources)

    def operation(self) -> Operation:
        name = self.string()
        location = SourceLocation(self.string(), self.varint(), self.varint())
        results = [self.string() for _ in range(self.varint())]
        operands = [self.string() for _ in range(self.varint())]
        attributes: dict[str, str | int | bool] = {}
        for _ in range(self.varint()):
            key = self.string()
            tag = self.byte()
            if tag == ATTR_BOOL:
                attributes[key] = bool(self.byte())
            elif tag == ATTR_INTEGER:
                attributes[key] = _unzigzag(self.varint())
            elif tag == ATTR_STRING:
                attributes[key] = self.string()
            else:
                raise BytecodeError(f"unknown attribute tag {tag}")
        regions = []
        for _ in range(self.varint()):
            regions.append(Region([self.operation() for _ in range(self.varint())]))
        return Operation(name, operands, results, attributes, regions, location)


def decode_module(data: bytes) -> IRModule:
    return _Decoder(data).decode()
