"""Small expression tree for SigNoz filter strings.

Tool arguments such as service names or search text end up inside filter
expressions. Building them as nodes and rendering once keeps quoting in a
single place, so a value like ``o'reilly`` cannot break out of its literal.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Union

Scalar = Union[str, int, float, bool]


def quote(value: Scalar | Sequence[Scalar]) -> str:
    """Render a literal in SigNoz filter syntax."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    return "[" + ", ".join(quote(item) for item in value) + "]"


class Expr:
    """Base class for filter nodes."""

    def render(self) -> str:
        raise NotImplementedError

    def render_operand(self) -> str:
        """Render for use as one side of an ``AND``."""
        return self.render()

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class Raw(Expr):
    """Expression text supplied verbatim by the caller.

    The text may contain ``OR``, so it is parenthesized whenever it is
    combined with other parts.
    """

    text: str

    def render(self) -> str:
        return self.text.strip()

    def render_operand(self) -> str:
        text = self.render()
        return f"({text})" if text else ""


@dataclass(frozen=True)
class Compare(Expr):
    """``<field> <op> <literal>``, e.g. ``service.name = 'api'``."""

    field: str
    op: str
    value: Scalar | tuple[Scalar, ...]

    def render(self) -> str:
        return f"{self.field} {self.op} {quote(self.value)}"


@dataclass(frozen=True)
class And(Expr):
    """Conjunction of sub-expressions; empty parts are dropped."""

    parts: tuple[Expr, ...]

    def _present(self) -> list[Expr]:
        return [part for part in self.parts if part.render()]

    def render(self) -> str:
        parts = self._present()
        if len(parts) == 1:
            return parts[0].render()
        return " AND ".join(part.render_operand() for part in parts)

    def render_operand(self) -> str:
        parts = self._present()
        if len(parts) == 1:
            return parts[0].render_operand()
        return self.render()


def all_of(parts: Iterable[Expr | str | None]) -> And:
    """AND together the non-empty parts, flattening nested conjunctions.

    Plain strings are treated as caller-supplied expressions.
    """
    nodes: list[Expr] = []
    for part in parts:
        if part is None:
            continue
        node = Raw(part) if isinstance(part, str) else part
        if isinstance(node, And):
            nodes.extend(node.parts)
        elif node.render():
            nodes.append(node)
    return And(tuple(nodes))


def conjoin(parts: Iterable[Expr | str | None]) -> str:
    """Render :func:`all_of` the parts."""
    return all_of(parts).render()


def equals(field: str, value: Scalar) -> Compare:
    return Compare(field, "=", value)


def contains(field: str, value: str) -> Compare:
    return Compare(field, "CONTAINS", value)


def one_of(field: str, values: Iterable[Scalar]) -> Compare:
    return Compare(field, "in", tuple(values))
