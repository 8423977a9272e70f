from __future__ import annotations

import re
from dataclasses import dataclass

from ..domain.errors import IRSyntaxError, UnregisteredDialectError
from ..domain.models import SourceLocation
from .model import MODULE_OP, AttributeValue, IRModule, Operation, Region
from .registry import DialectRegistry

TOKEN_RE = re.compile(
    r"""
      (?P<space>[ \t\r]+)
    | (?P<newline>\n)
    | (?P<comment>//[^\n]*)
    | (?P<resource_open>\{-\#)
    | (?P<resource_close>\#-\})
    | (?P<value>%[A-Za-z0-9_.$]+)
    | (?P<string>"(?:[^"\\\n]|\\.)*")
    | (?P<integer>-?[0-9]+)
    | (?P<ident>[A-Za-z_][A-Za-z0-9_.$]*)
    | (?P<punct>[(){}\[\],=:])
    """,
    re.VERBOSE,
)
ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t"}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    line: int
    column: int


def tokenize(text: str, *, filename: str = "<stdin>", line_offset: int = 0) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    line = 1
    line_start = 0
    while pos < len(text):
        match = TOKEN_RE.match(text, pos)
        if match is None:
            location = SourceLocation(filename, line + line_offset, pos - line_start + 1)
            if text[pos] == '"':
                raise IRSyntaxError("unterminated string literal", location)
            raise IRSyntaxError(f"unexpected character {text[pos]!r}", location)
        kind = match.lastgroup or ""
        if kind == "newline":
            line += 1
            line_start = match.end()
        elif kind not in ("space", "comment"):
            tokens.append(Token(kind, match.group(), line + line_offset, pos - line_start + 1))
        pos = match.end()
    tokens.append(Token("eof", "", line + line_offset, pos - line_start + 1))
    return tokens


def _describe(token: Token) -> str:
    if token.kind == "eof":
        return "end of input"
    return f"'{token.text}'"


class IRParser:
    """Recursive-descent parser for the generic textual IR form.

    ``line_offset`` shifts every reported line so that chunks of a larger
    buffer report locations relative to the whole buffer.
    """

    def __init__(
        self,
        registry: DialectRegistry,
        *,
        allow_unregistered_dialects: bool = False,
        filename: str = "<stdin>",
        line_offset: int = 0,
    ) -> None:
        self.registry = registry
        self.allow_unregistered_dialects = allow_unregistered_dialects
        self.filename = filename
        self.line_offset = line_offset
        self._tokens: list[Token] = []
        self._pos = 0

    def parse(self, text: str, *, use_explicit_module: bool = False) -> IRModule:
        self._tokens = tokenize(text, filename=self.filename, line_offset=self.line_offset)
        self._pos = 0
        operations: list[Operation] = []
        while self._peek().kind not in ("eof", "resource_open"):
            operations.append(self._parse_operation())
        resources: dict[str, str] = {}
        if self._peek().kind == "resource_open":
            resources = self._parse_resources()
        self._expect("eof", "end of input")
        return IRModule(self._top_level(operations, use_explicit_module), resources)

    def _top_level(self, operations: list[Operation], use_explicit_module: bool) -> Operation:
        start = SourceLocation(self.filename, self.line_offset + 1, 1)
        if use_explicit_module:
            if len(operations) != 1:
                location = operations[1].location if len(operations) > 1 else start
                raise IRSyntaxError(
                    f"expected a single top-level operation, found {len(operations)}",
                    location,
                )
            return operations[0]
        if len(operations) == 1 and operations[0].name == MODULE_OP:
            return operations[0]
        return Operation(MODULE_OP, regions=[Region(operations)], location=start)

    def _parse_operation(self) -> Operation:
        start = self._peek()
        location = self._location(start)
        results: list[str] = []
        if start.kind == "value":
            results.append(self._advance().text)
            while self._accept(","):
                results.append(self._expect("value", "SSA value").text)
            self._expect_punct("=")
        name = self._expect("ident", "operation name").text
        prefix, sep, _ = name.partition(".")
        if sep and not self.allow_unregistered_dialects and prefix not in self.registry:
            raise UnregisteredDialectError(prefix, name, location)

        operands: list[str] = []
        if self._accept("("):
            if not self._accept(")"):
                operands.append(self._expect("value", "SSA value").text)
                while self._accept(","):
                    operands.append(self._expect("value", "SSA value").text)
                self._expect_punct(")")

        attributes: dict[str, AttributeValue] = {}
        if self._accept("["):
            if not self._accept("]"):
                while True:
                    key_token = self._expect("ident", "attribute name")
                    self._expect_punct("=")
                    if key_token.text in attributes:
                        raise IRSyntaxError(f"duplicate attribute '{key_token.text}'", self._location(key_token))
                    attributes[key_token.text] = self._parse_attribute_value()
                    if self._accept("]"):
                        break
                    self._expect_punct(",")

        regions: list[Region] = []
        while self._peek_punct("{"):
            regions.append(self._parse_region())
        return Operation(name, operands, results, attributes, regions, location)

    def _parse_region(self) -> Region:
        self._expect_punct("{")
        operations: list[Operation] = []
        while not self._accept("}"):
            if self._peek().kind == "eof":
                raise IRSyntaxError("expected '}' to close region", self._location(self._peek()))
            operations.append(self._parse_operation())
        return Region(operations)

    def _parse_attribute_value(self) -> AttributeValue:
        token = self._advance()
        if token.kind == "string":
            return self._unescape(token)
        if token.kind == "integer":
            return int(token.text)
        if token.kind == "ident" and token.text in ("true", "false"):
            return token.text == "true"
        raise IRSyntaxError(f"expected attribute value, found {_describe(token)}", self._location(token))

    def _parse_resources(self) -> dict[str, str]:
        self._expect("resource_open", "'{-#'")
        resources: dict[str, str] = {}
        if self._peek().kind == "resource_close":
            self._advance()
            return resources
        while True:
            key_token = self._advance()
            if key_token.kind not in ("ident", "string"):
                raise IRSyntaxError(f"expected resource key, found {_describe(key_token)}", self._location(key_token))
            key = self._unescape(key_token) if key_token.kind == "string" else key_token.text
            self._expect_punct(":")
            resources[key] = self._unescape(self._expect("string", "resource string"))
            if self._accept(","):
                continue
            self._expect("resource_close", "'#-}'")
            return resources

    def _unescape(self, token: Token) -> str:
        body = token.text[1:-1]
        out: list[str] = []
        idx = 0
        while idx < len(body):
            char = body[idx]
            if char == "\\":
                escaped = body[idx + 1]
                if escaped not in ESCAPES:
                    raise IRSyntaxError(f"unknown escape sequence '\\{escaped}'", self._location(token))
                out.append(ESCAPES[escaped])
                idx += 2
                continue
            out.append(char)
            idx += 1
        return "".join(out)

    def _location(self, token: Token) -> SourceLocation:
        return SourceLocation(self.filename, token.line, token.column)

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.kind != "eof":
            self._pos += 1
        return token

    def _peek_punct(self, text: str) -> bool:
        token = self._peek()
        return token.kind == "punct" and token.text == text

    def _accept(self, text: str) -> bool:
        if self._peek_punct(text):
            self._advance()
            return True
        return False

    def _expect(self, kind: str, what: str) -> Token:
        token = self._peek()
        if token.kind != kind:
            raise IRSyntaxError(f"expected {what}, found {_describe(token)}", self._location(token))
        return self._advance()

    def _expect_punct(self, text: str) -> Token:
        token = self._peek()
        if not self._peek_punct(text):
            raise IRSyntaxError(f"expected '{text}', found {_describe(token)}", self._location(token))
        return self._advance()


def parse_source(
    text: str,
    registry: DialectRegistry,
    *,
    allow_unregistered_dialects: bool = False,
    use_explicit_module: bool = False,
    filename: str = "<stdin>",
    line_offset: int = 0,
) -> IRModule:
    parser = IRParser(
        registry,
        allow_unregistered_dialects=allow_unregistered_dialects,
        filename=filename,
        line_offset=line_offset,
    )
    return parser.parse(text, use_explicit_module=use_explicit_module)
