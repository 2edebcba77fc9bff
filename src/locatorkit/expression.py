"""
XPath Expression Algebra.

Small composable builder for XPath 1.0 text used by selector expression
blocks. Pieces:
- XPath: a location path that accepts predicates with ``expr[condition]``
- Union: several paths joined with ``|``; predicates apply to every branch
- Operand: a value-producing term (attribute, normalized string value)
- Predicate: a boolean condition combined with ``|`` (or), ``&`` (and), ``~`` (not)

CSS helpers at the bottom produce quoted attribute fragments for
selectors declared with the css format.
"""

from typing import Any, Optional


def literal(value: Any) -> str:
    """Quote a Python value as an XPath string literal.

    XPath 1.0 has no escape syntax, so a value containing both quote
    kinds is spliced together with concat().
    """
    text = str(value)
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    pieces = [f"'{piece}'" for piece in text.split("'")]
    return "concat(" + ", \"'\", ".join(pieces) + ")"


def _term(value: Any) -> str:
    if isinstance(value, (Operand, Predicate, XPath, Union)):
        return str(value)
    if isinstance(value, bool):
        return "true()" if value else "false()"
    if isinstance(value, (int, float)):
        return str(value)
    return literal(value)


def _node_test(names: tuple) -> str:
    if not names:
        return "*"
    if len(names) == 1:
        return names[0]
    return "*[" + " or ".join(f"self::{name}" for name in names) + "]"


class Predicate:
    """A boolean XPath condition."""

    def __init__(self, text: str):
        self.text = text

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Predicate({self.text!r})"

    def __or__(self, other: Any) -> "Predicate":
        return Predicate(f"({self} or {_term(other)})")

    def __and__(self, other: Any) -> "Predicate":
        return Predicate(f"({self} and {_term(other)})")

    def __invert__(self) -> "Predicate":
        return Predicate(f"not({self})")


class Operand:
    """A value-producing XPath term such as ``@id`` or a string value."""

    def __init__(self, text: str):
        self.text = text

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Operand({self.text!r})"

    def equals(self, other: Any) -> Predicate:
        return Predicate(f"{self} = {_term(other)}")

    # Comparison builds a condition instead of comparing the objects
    __eq__ = equals  # type: ignore[assignment]
    __hash__ = object.__hash__

    def __ne__(self, other: Any) -> Predicate:  # type: ignore[override]
        return Predicate(f"{self} != {_term(other)}")

    def is_(self, other: Any, exact: bool = True) -> Predicate:
        """Equality when ``exact``, substring match otherwise."""
        return self.equals(other) if exact else self.contains(other)

    def contains(self, value: Any) -> Predicate:
        return Predicate(f"contains({self}, {_term(value)})")

    def starts_with(self, value: Any) -> Predicate:
        return Predicate(f"starts-with({self}, {_term(value)})")

    def contains_word(self, word: str) -> Predicate:
        """Whitespace-separated token match, as for the class attribute."""
        return Predicate(
            f"contains(concat(' ', normalize-space({self}), ' '), {literal(f' {word} ')})"
        )

    def __or__(self, other: Any) -> Predicate:
        return Predicate(f"({self} or {_term(other)})")

    def __and__(self, other: Any) -> Predicate:
        return Predicate(f"({self} and {_term(other)})")

    def __invert__(self) -> Predicate:
        return Predicate(f"not({self})")


class XPath:
    """A location path."""

    def __init__(self, text: str):
        self.text = text

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"XPath({self.text!r})"

    def to_xpath(self) -> str:
        return self.text

    def __getitem__(self, condition: Any) -> "XPath":
        if condition is None:
            return self
        return XPath(f"{self.text}[{condition}]")

    where = __getitem__

    def descendant(self, *names: Any) -> "XPath | Union":
        """Step into descendants by element names or by another relative path."""
        if len(names) == 1 and isinstance(names[0], Union):
            return Union(*(self.descendant(expr) for expr in names[0].expressions))
        if len(names) == 1 and isinstance(names[0], XPath):
            return XPath(self.text + _relative(names[0]))
        return XPath(f"{self.text}//{_node_test(names)}")

    def child(self, *names: str) -> "XPath":
        return XPath(f"{self.text}/{_node_test(names)}")

    def attr(self, name: str) -> Operand:
        return Operand(f"{self.text}/@{name}")

    def union(self, *others: "XPath | Union") -> "Union":
        return Union(self, *others)


class Union:
    """Several location paths whose results are combined."""

    def __init__(self, *expressions: "XPath | Union"):
        flattened = []
        for expr in expressions:
            if isinstance(expr, Union):
                flattened.extend(expr.expressions)
            else:
                flattened.append(expr)
        self.expressions = flattened

    def __str__(self) -> str:
        return " | ".join(str(expr) for expr in self.expressions)

    def __repr__(self) -> str:
        return f"Union({', '.join(repr(expr) for expr in self.expressions)})"

    def to_xpath(self) -> str:
        return str(self)

    def __getitem__(self, condition: Any) -> "Union":
        if condition is None:
            return self
        return Union(*(expr[condition] for expr in self.expressions))

    where = __getitem__

    def descendant(self, *names: Any) -> "Union":
        return Union(*(expr.descendant(*names) for expr in self.expressions))

    def union(self, *others: "XPath | Union") -> "Union":
        return Union(self, *others)


def _relative(expr: XPath) -> str:
    text = expr.text
    if text.startswith("./"):
        return text[1:]
    if text.startswith("/"):
        return text
    return "/" + text


def descendant(*names: str) -> XPath:
    """Descendants of the context node, any element when no names are given."""
    return XPath(f".//{_node_test(names)}")


def anywhere(*names: str) -> XPath:
    """Matching elements anywhere in the document."""
    return XPath(f"//{_node_test(names)}")


def attr(name: str) -> Operand:
    """Attribute of the context node."""
    return Operand(f"@{name}")


def string_n() -> Operand:
    """Normalized string value of the context node."""
    return Operand("normalize-space(string(.))")


def to_xpath(expression: Any) -> Optional[str]:
    """Render an expression to XPath text; ``None`` stays ``None``."""
    if expression is None:
        return None
    return str(expression)


def css_escape(value: Any) -> str:
    """Quote a value as a CSS string."""
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def css_attr(attribute: str, value: Any) -> str:
    """CSS attribute-equality fragment, e.g. ``[name="email"]``."""
    return f"[{attribute}={css_escape(value)}]"
