"""Filter expressions evaluated against an environment.

Unit and requirement filters use LDAP-style syntax, for example
``(&(os=linux)(|(ws=gtk)(ws=x11))(!(arch=ppc)))``. Expressions are parsed
once into an immutable tree and evaluated as a pure function of the
environment mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from functools import lru_cache
from typing import Literal, Mapping, Union

from core.errors import MirrorModelError
from core.versions import Version

ComparisonOperator = Literal["=", "~=", ">=", "<="]


@dataclass(frozen=True)
class Comparison:
    """Leaf node comparing one environment key with a value."""

    key: str
    operator: ComparisonOperator
    value: str


@dataclass(frozen=True)
class Present:
    """Leaf node matching when the key exists in the environment."""

    key: str


@dataclass(frozen=True)
class Not:
    """Negation of a child expression."""

    child: "FilterNode"


@dataclass(frozen=True)
class Composite:
    """Conjunction or disjunction of child expressions."""

    operator: Literal["&", "|"]
    children: tuple["FilterNode", ...]


FilterNode = Union[Comparison, Present, Not, Composite]


def evaluate_filter(expression: str | None, environment: Mapping[str, str]) -> bool:
    """Evaluate a filter expression against an environment.

    Args:
        expression: Filter text; ``None`` or blank always matches.
        environment: Environment properties, e.g. ``{"os": "linux"}``.

    Returns:
        Whether the environment satisfies the filter.

    Raises:
        MirrorModelError: If the expression is malformed.
    """
    if expression is None or not expression.strip():
        return True
    return _evaluate(parse_filter(expression.strip()), environment)


@lru_cache(maxsize=1024)
def parse_filter(expression: str) -> FilterNode:
    """Parse filter text into an expression tree.

    Args:
        expression: Filter text.

    Returns:
        Root expression node.

    Raises:
        MirrorModelError: If the expression is malformed.
    """
    parser = _FilterParser(expression)
    node = parser.parse_node()
    parser.expect_end()
    return node


def _evaluate(node: FilterNode, environment: Mapping[str, str]) -> bool:
    if isinstance(node, Composite):
        if node.operator == "&":
            return all(_evaluate(child, environment) for child in node.children)
        return any(_evaluate(child, environment) for child in node.children)
    if isinstance(node, Not):
        return not _evaluate(node.child, environment)
    if isinstance(node, Present):
        return node.key in environment
    actual = environment.get(node.key)
    if actual is None:
        return False
    return _compare(str(actual), node.operator, node.value)


def _compare(actual: str, operator: ComparisonOperator, expected: str) -> bool:
    if operator == "=":
        if "*" in expected:
            return fnmatchcase(actual, expected)
        return actual == expected
    if operator == "~=":
        return " ".join(actual.lower().split()) == " ".join(expected.lower().split())
    ordering = _ordering(actual, expected)
    if operator == ">=":
        return ordering >= 0
    return ordering <= 0


def _ordering(actual: str, expected: str) -> int:
    """Compare as versions when both sides parse, else as strings."""
    try:
        left: object = Version.parse(actual)
        right: object = Version.parse(expected)
    except MirrorModelError:
        left, right = actual, expected
    if left == right:
        return 0
    return 1 if left > right else -1  # type: ignore[operator]


class _FilterParser:
    """Recursive-descent parser over one filter string."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._position = 0

    def parse_node(self) -> FilterNode:
        self._skip_whitespace()
        self._expect("(")
        self._skip_whitespace()
        head = self._peek()
        if head in ("&", "|"):
            self._position += 1
            children = self._parse_children()
            node: FilterNode = Composite(operator=head, children=children)  # type: ignore[arg-type]
        elif head == "!":
            self._position += 1
            node = Not(child=self.parse_node())
        else:
            node = self._parse_item()
        self._skip_whitespace()
        self._expect(")")
        return node

    def expect_end(self) -> None:
        self._skip_whitespace()
        if self._position != len(self._text):
            self._fail("unexpected trailing characters")

    def _parse_children(self) -> tuple[FilterNode, ...]:
        children: list[FilterNode] = []
        self._skip_whitespace()
        while self._peek() == "(":
            children.append(self.parse_node())
            self._skip_whitespace()
        if not children:
            self._fail("composite expression needs at least one operand")
        return tuple(children)

    def _parse_item(self) -> FilterNode:
        key_start = self._position
        while self._peek() not in ("=", "~", ">", "<", ")", ""):
            self._position += 1
        key = self._text[key_start : self._position].strip()
        if not key:
            self._fail("missing attribute name")
        operator = self._parse_operator()
        value_start = self._position
        while self._peek() not in (")", ""):
            self._position += 1
        value = self._text[value_start : self._position].strip()
        if operator == "=" and value == "*":
            return Present(key=key)
        return Comparison(key=key, operator=operator, value=value)

    def _parse_operator(self) -> ComparisonOperator:
        for operator in ("~=", ">=", "<=", "="):
            if self._text.startswith(operator, self._position):
                self._position += len(operator)
                return operator  # type: ignore[return-value]
        self._fail("missing comparison operator")
        raise AssertionError("unreachable")

    def _peek(self) -> str:
        if self._position >= len(self._text):
            return ""
        return self._text[self._position]

    def _expect(self, token: str) -> None:
        if self._peek() != token:
            self._fail(f"expected '{token}'")
        self._position += 1

    def _skip_whitespace(self) -> None:
        while self._peek() and self._peek().isspace():
            self._position += 1

    def _fail(self, reason: str) -> None:
        raise MirrorModelError(
            f"Invalid filter '{self._text}' at position {self._position}: {reason}."
        )
