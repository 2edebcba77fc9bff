"""
Selector Filters.

A filter governs one option (or every option whose key matches a pattern)
and constrains which candidates a selector accepts:
- ExpressionFilter: rewrites the query expression before it is executed
- NodeFilter: accepts or rejects a concrete candidate after it was found
- IdentityExpressionFilter: marks an option as handled inline by the
  expression block, doing only the validation bookkeeping

Filters are immutable once built so several filter sets can share them.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Mapping, Optional, Union

from .exceptions import InvalidOptionValueError


class FilterKind(str, Enum):
    """Where in the matching process a filter runs."""
    EXPRESSION = "expression"
    NODE = "node"


class _NotSet:
    """Marks a filter option that was not declared at all."""

    def __repr__(self) -> str:
        return "NOT_SET"

    def __bool__(self) -> bool:
        return False


NOT_SET = _NotSet()

BOOLEAN_VALUES = (True, False)

FilterName = Union[str, re.Pattern]


def _accepts(valid: Any, value: Any) -> bool:
    if isinstance(valid, type):
        return isinstance(value, valid)
    if isinstance(valid, re.Pattern):
        return isinstance(value, str) and bool(valid.search(value))
    if isinstance(valid, range):
        return isinstance(value, int) and value in valid
    if isinstance(valid, bool):
        return isinstance(value, bool) and value is valid
    return valid == value


@dataclass(frozen=True)
class Filter:
    """
    Base for all filters.

    ``name`` is either a fixed option key (str) or a compiled pattern. A
    pattern name, or an explicit ``matcher``, makes the filter
    pattern-based: it is evaluated for every option whose key matches and
    its body receives the option name as well as the value.
    """
    name: FilterName
    body: Optional[Callable[..., Any]] = None
    matcher: Optional[re.Pattern] = None
    valid_values: Optional[tuple] = None
    default: Any = NOT_SET
    skip_if: Any = NOT_SET

    kind: ClassVar[FilterKind]

    def __post_init__(self):
        if isinstance(self.matcher, str):
            object.__setattr__(self, "matcher", re.compile(self.matcher))
        if self.valid_values is not None and not isinstance(self.valid_values, tuple):
            if isinstance(self.valid_values, (list, set, frozenset)):
                values = tuple(self.valid_values)
            else:
                values = (self.valid_values,)
            object.__setattr__(self, "valid_values", values)

    @property
    def pattern(self) -> Optional[re.Pattern]:
        if self.matcher is not None:
            return self.matcher
        if isinstance(self.name, re.Pattern):
            return self.name
        return None

    @property
    def is_matcher(self) -> bool:
        return self.pattern is not None

    @property
    def has_default(self) -> bool:
        return self.default is not NOT_SET

    @property
    def display_name(self) -> str:
        if isinstance(self.name, re.Pattern):
            return self.name.pattern
        return str(self.name)

    def handles_option(self, option_name: Any) -> bool:
        """Whether this filter governs the given option key."""
        if self.is_matcher:
            return bool(self.pattern.search(str(option_name)))
        return self.name == option_name

    def resolve(self, options: Mapping[str, Any], option_name: Any) -> Any:
        """Value for ``option_name`` after default substitution, ``None`` if absent."""
        value = options.get(option_name)
        if value is None and self.has_default:
            return self.default
        return value

    def skip(self, value: Any) -> bool:
        return self.skip_if is not NOT_SET and value == self.skip_if

    def valid_value(self, value: Any) -> bool:
        if self.valid_values is None:
            return True
        if self.skip(value):
            return True
        return any(_accepts(valid, value) for valid in self.valid_values)

    def _apply(self, subject: Any, option_name: Any, value: Any, skip_value: Any) -> Any:
        if not self.valid_value(value):
            raise InvalidOptionValueError(
                self.display_name, str(option_name), value, self.valid_values or ()
            )
        if self.skip(value) or self.body is None:
            return skip_value
        if self.is_matcher:
            return self.body(subject, option_name, value)
        return self.body(subject, value)


@dataclass(frozen=True)
class ExpressionFilter(Filter):
    """Rewrites a query expression given an option value."""

    kind: ClassVar[FilterKind] = FilterKind.EXPRESSION

    def apply_filter(self, expression: Any, option_name: Any, value: Any) -> Any:
        return self._apply(expression, option_name, value, expression)


@dataclass(frozen=True)
class IdentityExpressionFilter(ExpressionFilter):
    """Recognizes an option whose value the expression block uses directly."""

    def apply_filter(self, expression: Any, option_name: Any, value: Any) -> Any:
        self._apply(expression, option_name, value, expression)
        return expression


@dataclass(frozen=True)
class NodeFilter(Filter):
    """Tests a matched candidate given an option value."""

    kind: ClassVar[FilterKind] = FilterKind.NODE

    def matches(self, node: Any, option_name: Any, value: Any) -> bool:
        return bool(self._apply(node, option_name, value, True))
