"""
Selectors.

A Selector is a named rule that turns a locator string and an options
mapping into a query expression (XPath or CSS), and owns the filters that
decide which matched candidates are really accepted. Selectors are built
and found through a SelectorRegistry:

    registry = SelectorRegistry()

    def define_button(s):
        s.label("button")

        @s.xpath("value")
        def _(locator, options):
            return descendant("button")[string_n() == locator]

    registry.add("button", define_button)
    expression = registry.get("button").call("Save")

Definition callables receive the Selector itself as an explicit builder;
``registry.update`` runs another definition against the same instance.
"""

import logging
import operator
import threading
from enum import Enum
from functools import reduce
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Optional

from . import expression as x
from .config import Config, Visibility
from .exceptions import UnknownSelectorError
from .filter_set import RESERVED_QUERY_KEYS, FilterSet, FilterSetRegistry
from .filters import ExpressionFilter, IdentityExpressionFilter, NodeFilter

logger = logging.getLogger(__name__)


class ExpressionFormat(str, Enum):
    """Query language a selector produces."""
    XPATH = "xpath"
    CSS = "css"


Builder = Callable[[Any, dict], Any]
Definition = Callable[["Selector"], None]


def _flatten(names) -> list:
    flat = []
    for name in names:
        if isinstance(name, (list, tuple)):
            flat.extend(_flatten(name))
        else:
            flat.append(name)
    return flat


class Selector:
    """Named rule producing a query expression and its filters."""

    def __init__(
        self,
        name: str,
        definition: Optional[Definition] = None,
        *,
        filter_sets: Optional[FilterSetRegistry] = None,
        config: Optional[Config] = None,
    ):
        self.name = name
        self.format: Optional[ExpressionFormat] = None
        self.config = config if config is not None else Config.from_env()
        self._filter_sets = filter_sets if filter_sets is not None else FilterSetRegistry()
        # Always a fresh set, registered only once the definition succeeded
        self.filter_set = FilterSet(name)
        self._expression: Optional[Builder] = None
        self._match: Optional[Callable[[str], bool]] = None
        self._label: Optional[str] = None
        self._default_visibility: Optional[Visibility] = None
        if definition is not None:
            definition(self)
        self._filter_sets.register(self.filter_set)

    def __repr__(self) -> str:
        fmt = self.format.value if self.format else None
        return f"Selector({self.name!r}, format={fmt!r})"

    @property
    def node_filters(self) -> dict[Any, NodeFilter]:
        return self.filter_set.node_filters

    @property
    def expression_filters(self) -> dict[Any, ExpressionFilter]:
        return self.filter_set.expression_filters

    @property
    def custom_filters(self) -> Mapping[Any, Any]:
        """Deprecated merged view; wrong when a node and an expression filter share a name."""
        logger.warning(
            "Selector.custom_filters is deprecated and is not valid when a node filter "
            "and an expression filter share a name; use node_filters or expression_filters"
        )
        return MappingProxyType({**self.node_filters, **self.expression_filters})

    @property
    def expression(self) -> Optional[Builder]:
        """The builder bound to the current format, if any."""
        return self._expression

    def xpath(self, *allowed_filters: Any) -> Callable[[Builder], Builder]:
        """
        Define this selector by an XPath builder; use as a decorator.

        The builder is called as ``builder(locator, options)`` and returns an
        expression convertible to XPath text.

        Args:
            allowed_filters: Option names the builder consumes itself. Each
                is registered as an identity expression filter.
        """
        def register(builder: Builder) -> Builder:
            self._set_expression(ExpressionFormat.XPATH, builder, allowed_filters)
            return builder

        return register

    def css(self, *allowed_filters: Any) -> Callable[[Builder], Builder]:
        """Define this selector by a CSS builder; use as a decorator."""
        def register(builder: Builder) -> Builder:
            self._set_expression(ExpressionFormat.CSS, builder, allowed_filters)
            return builder

        return register

    def _set_expression(self, fmt: ExpressionFormat, builder: Builder, allowed_filters) -> None:
        self.format = fmt
        self._expression = builder
        for name in _flatten(allowed_filters):
            self.expression_filters[name] = IdentityExpressionFilter(name)
        logger.debug(f"Selector '{self.name}' uses {fmt.value}")

    def match(self, predicate: Callable[[str], bool]) -> Callable[[str], bool]:
        """Set the auto-detection predicate; usable as a decorator."""
        self._match = predicate
        return predicate

    def matches(self, locator: Any) -> bool:
        """Whether auto-detection should pick this selector for ``locator``."""
        if self._match is None:
            return False
        return bool(self._match(locator))

    def label(self, label: Optional[str] = None) -> Optional[str]:
        """Set and/or return the human readable label used in error messages."""
        if label is not None:
            self._label = label
        return self._label

    def call(self, locator: Any, **options: Any) -> Any:
        """
        Build the raw expression for ``locator``.

        Returns None (after logging a warning) when no format is defined.
        """
        if self.format is None:
            logger.warning(f"Selector '{self.name}' has no format")
            return None
        return self._expression(locator, options)

    __call__ = call

    def build(self, locator: Any, **options: Any) -> Any:
        """Raw expression with every expression filter folded in."""
        expression = self.call(locator, **options)
        if expression is None:
            return None
        return self.apply_expression_filters(expression, options)

    def apply_expression_filters(self, expression: Any, options: Mapping[str, Any]) -> Any:
        return self.filter_set.apply_expression_filters(expression, options)

    def matches_filters(self, node: Any, options: Mapping[str, Any]) -> bool:
        return self.filter_set.matches_node_filters(node, options)

    def node_filter(self, names, *types, **options) -> Callable:
        return self.filter_set.node_filter(names, *types, **options)

    filter = node_filter

    def expression_filter(self, name, *types, **options) -> Callable:
        return self.filter_set.expression_filter(name, *types, **options)

    def describe(self, callback: Callable[[dict], Optional[str]]) -> Callable:
        return self.filter_set.describe(callback)

    def borrow_filters(self, name: str, filters_to_use=None) -> None:
        """
        Import filters and descriptions from the filter set registered as ``name``.

        Args:
            name: Filter set to borrow from; it must already exist
            filters_to_use: Optional allow-list of filter names

        Raises:
            UnknownFilterSetError: If no filter set is registered as ``name``
        """
        source = self._filter_sets.get(name)
        self.filter_set.import_filters(source, filters_to_use)

    def visible(self, default_visibility: Visibility | str) -> None:
        """
        Set the visibility used when a query passes no visible option.

        Modes: ``all`` (visible and invisible), ``hidden`` (invisible only),
        ``visible`` (visible only).
        """
        self._default_visibility = Visibility(default_visibility)

    def default_visibility(self, fallback: Visibility | str | bool | None = None) -> Visibility:
        """Configured visibility, else ``fallback``, else ``config.default_visibility``."""
        if self._default_visibility is not None:
            return self._default_visibility
        if fallback is None:
            return self.config.default_visibility
        if isinstance(fallback, bool):
            return Visibility.VISIBLE if fallback else Visibility.ALL
        return Visibility(fallback)

    def description(self, options: Optional[Mapping[str, Any]] = None, **extra: Any) -> str:
        """Human readable description for failure messages; never affects matching."""
        opts = {**(options or {}), **extra}
        parts = [
            self._label,
            self.filter_set.description(opts),
            self.describe_expression_filters(opts),
        ]
        return " ".join(part for part in parts if part)

    def describe_expression_filters(self, options: Mapping[str, Any]) -> str:
        fragments = []
        unclaimed = self.filter_set.unclaimed_options(options)
        for name, expression_filter in self.expression_filters.items():
            if expression_filter.is_matcher:
                for key in [key for key in unclaimed if expression_filter.handles_option(key)]:
                    unclaimed.remove(key)
                    value = options[key]
                    if value is not None:
                        fragments.append(f"with {expression_filter.display_name}[{key} => {value}]")
            elif name not in RESERVED_QUERY_KEYS and options.get(name) is not None:
                fragments.append(f"with {name} {options[name]}")
        return " ".join(fragments)


def locate_field(xpath: Any, locator: Any, enable_aria_label: bool = False, **_options: Any) -> Any:
    """
    Constrain a field-like element expression to those identified by ``locator``.

    A field matches by id, name or placeholder, by the ``for`` of a label
    whose text is the locator, optionally by aria-label, or by being
    wrapped in a label whose text is the locator.
    """
    locate_xpath = xpath  # base expression is reused by the label-wrap branch
    if locator is None:
        return locate_xpath

    locator = str(locator)
    attr_matchers = reduce(operator.or_, [
        x.attr("id") == locator,
        x.attr("name") == locator,
        x.attr("placeholder") == locator,
        x.attr("id") == x.anywhere("label")[x.string_n().is_(locator)].attr("for"),
    ])
    if enable_aria_label:
        attr_matchers |= x.attr("aria-label").is_(locator)

    locate_xpath = locate_xpath[attr_matchers]
    return locate_xpath.union(x.descendant("label")[x.string_n().is_(locator)].descendant(xpath))


def find_by_attr(attribute: str, value: Any) -> Optional[x.Predicate]:
    if attribute == "class":
        return find_by_class_attr(value)
    return x.attr(attribute) == value if value else None


def find_by_class_attr(classes: Any) -> Optional[x.Predicate]:
    if not classes:
        return None
    if isinstance(classes, str):
        classes = [classes]
    return reduce(operator.and_, [x.attr("class").contains_word(klass) for klass in classes])


class SelectorRegistry:
    """
    Process-wide mapping from name to Selector.

    Holds the FilterSetRegistry its selectors register their own filter sets
    in, so borrowing by name resolves within the same registry, and the
    Config every selector it builds is given.
    """

    def __init__(self, filter_sets: Optional[FilterSetRegistry] = None, config: Optional[Config] = None):
        self.filter_sets = filter_sets if filter_sets is not None else FilterSetRegistry()
        self.config = config if config is not None else Config.from_env()
        self._selectors: dict[str, Selector] = {}
        self._lock = threading.RLock()
        logger.debug(f"Selector registry config: {self.config.to_dict()}")

    def __contains__(self, name: object) -> bool:
        return name in self._selectors

    def __len__(self) -> int:
        return len(self._selectors)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._selectors))

    def add(self, name: str, definition: Optional[Definition] = None) -> Selector:
        """
        Build a new selector and register it, replacing any previous one.

        If ``definition`` raises, neither the selector nor its filter set is
        registered and the previous ones stay in place.
        """
        with self._lock:
            selector = Selector(name, definition, filter_sets=self.filter_sets, config=self.config)
            self._selectors[name] = selector
            logger.debug(f"Registered selector '{name}'")
            return selector

    def update(self, name: str, definition: Definition) -> Selector:
        """
        Run ``definition`` against the existing selector, amending it in place.

        Raises:
            UnknownSelectorError: If no selector is registered as ``name``
        """
        with self._lock:
            selector = self._selectors.get(name)
            if selector is None:
                raise UnknownSelectorError(name)
            definition(selector)
            logger.debug(f"Updated selector '{name}'")
            return selector

    def remove(self, name: str) -> None:
        with self._lock:
            self._selectors.pop(name, None)

    def get(self, name: str) -> Optional[Selector]:
        return self._selectors.get(name)

    def all(self) -> Mapping[str, Selector]:
        """Read-only snapshot of every registered selector, in registration order."""
        with self._lock:
            return MappingProxyType(dict(self._selectors))

    def detect(self, locator: Any) -> Optional[Selector]:
        """First registered selector whose match predicate accepts ``locator``."""
        for selector in self.all().values():
            if selector.matches(locator):
                return selector
        return None

    def reset(self) -> None:
        """Forget every selector and filter set."""
        with self._lock:
            self._selectors.clear()
            self.filter_sets.reset()
