"""Reference IR collaborator: object model, parser, printer, verifier and bytecode codec."""

from .bytecode import CURRENT_VERSION, MIN_VERSION, decode_module, encode_module
from .irdl import load_irdl_file, load_irdl_text
from .model import IRModule, Operation, Region, first_difference, first_module_difference
from .parser import IRParser, parse_source
from .printer import print_module
from .registry import Dialect, DialectRegistry, OpDefinition, default_registry
from .verifier import verify_module

__all__ = [
    "CURRENT_VERSION",
    "MIN_VERSION",
    "Dialect",
    "DialectRegistry",
    "IRModule",
    "IRParser",
    "OpDefinition",
    "Operation",
    "Region",
    "decode_module",
    "default_registry",
    "encode_module",
    "first_difference",
    "first_module_difference",
    "load_irdl_file",
    "load_irdl_text",
    "parse_source",
    "print_module",
    "verify_module",
]
