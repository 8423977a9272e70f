from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from ..domain.errors import PipelinePopulationError
from .pass_manager import ROOT_ANCHOR, Pass, PassManager

ANCHORED_PIPELINE_RE = re.compile(r"^\s*([A-Za-z_][\w.]*)\s*\((.*)\)\s*$", re.DOTALL)
PASS_ELEMENT_RE = re.compile(r"^([A-Za-z_][\w.-]*)\s*(?:\{(.*)\})?$", re.DOTALL)
ROOT_ANCHORS = (ROOT_ANCHOR, "module")


@dataclass(frozen=True)
class PassInfo:
    argument: str
    description: str
    factory: Callable[..., Pass]


class PassRegistry:
    """Catalog of the passes a textual pipeline may name."""

    def __init__(self) -> None:
        self._passes: dict[str, PassInfo] = {}

    def register(self, factory: Callable[..., Pass], *, argument: str | None = None, description: str | None = None) -> None:
        argument = argument or getattr(factory, "argument", "")
        if not argument:
            raise ValueError("pass registration requires an argument name")
        self._passes[argument] = PassInfo(
            argument=argument,
            description=description if description is not None else getattr(factory, "description", ""),
            factory=factory,
        )

    def __contains__(self, argument: object) -> bool:
        return argument in self._passes

    def infos(self) -> list[PassInfo]:
        return [self._passes[name] for name in sorted(self._passes)]

    def create(self, argument: str, options: dict[str, str] | None = None) -> Pass:
        info = self._passes.get(argument)
        if info is None:
            raise PipelinePopulationError(f"'{argument}' does not refer to a registered pass")
        try:
            return info.factory(**(options or {}))
        except TypeError as exc:
            raise PipelinePopulationError(f"invalid options for pass '{argument}': {exc}") from exc

    def format_catalog(self) -> str:
        lines = ["Available Passes:"]
        width = max((len(info.argument) for info in self._passes.values()), default=0)
        for info in self.infos():
            lines.append(f"  --{info.argument.ljust(width)}  - {info.description}")
        return "\n".join(lines) + "\n"


def _split_top_level(text: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char in "{(":
            depth += 1
        elif char in "})":
            depth -= 1
            if depth < 0:
                raise PipelinePopulationError(f"unbalanced '{char}' in pass pipeline")
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    if depth != 0:
        raise PipelinePopulationError("unbalanced brackets in pass pipeline")
    parts.append("".join(current).strip())
    return parts


def _parse_options(text: str, argument: str) -> dict[str, str]:
    options: dict[str, str] = {}
    for item in text.split():
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise PipelinePopulationError(f"invalid option '{item}' for pass '{argument}', expected key=value")
        options[key] = value
    return options


def parse_pipeline(text: str, registry: PassRegistry) -> list[Pass]:
    """Parse ``builtin.module(a,b{k=v})`` or the bare ``a,b{k=v}`` form."""
    body = text.strip()
    anchored = ANCHORED_PIPELINE_RE.match(body)
    if anchored:
        if anchored.group(1) not in ROOT_ANCHORS:
            raise PipelinePopulationError(
                f"pipeline anchored on '{anchored.group(1)}', expected '{ROOT_ANCHOR}'"
            )
        body = anchored.group(2)
    if not body.strip():
        return []

    passes: list[Pass] = []
    for element in _split_top_level(body):
        match = PASS_ELEMENT_RE.match(element)
        if match is None:
            raise PipelinePopulationError(f"cannot parse pass pipeline element '{element}'")
        argument, options = match.group(1), match.group(2)
        passes.append(registry.create(argument, _parse_options(options or "", argument)))
    return passes


def populate_from_text(pass_manager: PassManager, text: str, registry: PassRegistry) -> None:
    for pass_ in parse_pipeline(text, registry):
        pass_manager.add(pass_)
