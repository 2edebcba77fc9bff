"""
Filter Sets.

A FilterSet is a named bag of expression filters, node filters and
description callbacks. Every selector owns one, and any filter set can be
looked up by name and borrowed by other selectors so that a family of
selectors shares one filter vocabulary.
"""

import logging
import threading
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from .exceptions import UnknownFilterSetError
from .filters import (
    BOOLEAN_VALUES,
    ExpressionFilter,
    Filter,
    FilterKind,
    FilterName,
    NodeFilter,
)

logger = logging.getLogger(__name__)

# Option keys owned by the query layer; never consumed by pattern filters
RESERVED_QUERY_KEYS = frozenset({
    "count",
    "minimum",
    "maximum",
    "between",
    "text",
    "id",
    "class",
    "style",
    "visible",
    "exact",
    "exact_text",
    "normalize_ws",
    "match",
    "wait",
    "filter_set",
    "focused",
})

FILTER_TYPES = ("boolean",)

Definition = Callable[["FilterSet"], None]
Description = Callable[[dict], Optional[str]]


class FilterSet:
    """Named, reusable bundle of filters and description callbacks."""

    def __init__(self, name: str, definition: Optional[Definition] = None):
        self.name = name
        self.expression_filters: dict[FilterName, ExpressionFilter] = {}
        self.node_filters: dict[FilterName, NodeFilter] = {}
        self.descriptions: list[Description] = []
        if definition is not None:
            definition(self)

    def __repr__(self) -> str:
        return (
            f"FilterSet({self.name!r}, expression_filters={list(self.expression_filters)}, "
            f"node_filters={list(self.node_filters)})"
        )

    def node_filter(
        self,
        names: FilterName | Sequence[FilterName],
        *types: str,
        matcher: Any = None,
        **options: Any,
    ) -> Callable:
        """
        Declare a node filter; use as a decorator on the filter body.

        A fixed name takes a body ``(node, value) -> bool``; a pattern name
        or ``matcher`` takes ``(node, option_name, value) -> bool``.

        Args:
            names: Option key, compiled pattern, or a list of them
            types: Filter types; ``"boolean"`` restricts values to True/False
            matcher: Pattern selecting the option keys this filter handles
            **options: ``valid_values``, ``default`` and ``skip_if``
        """
        name_list = list(names) if isinstance(names, (list, tuple)) else [names]

        def register(body: Callable) -> Callable:
            for name in name_list:
                self._add_filter(NodeFilter, name, body, types, matcher, options)
            return body

        return register

    filter = node_filter

    def expression_filter(
        self,
        name: FilterName,
        *types: str,
        matcher: Any = None,
        **options: Any,
    ) -> Callable:
        """
        Declare an expression filter; use as a decorator on the filter body.

        A fixed name takes a body ``(expression, value) -> expression``; a
        pattern name or ``matcher`` takes
        ``(expression, option_name, value) -> expression``.
        """
        def register(body: Callable) -> Callable:
            self._add_filter(ExpressionFilter, name, body, types, matcher, options)
            return body

        return register

    def add(self, filter_: Filter) -> Filter:
        """Register an already built filter under its own name."""
        if filter_.kind is FilterKind.EXPRESSION:
            self.expression_filters[filter_.name] = filter_
        else:
            self.node_filters[filter_.name] = filter_
        return filter_

    def describe(self, callback: Description) -> Description:
        """Append a description callback ``(options) -> str``."""
        self.descriptions.append(callback)
        return callback

    def description(self, options: Optional[Mapping[str, Any]] = None) -> str:
        opts = self._options_with_defaults(options or {})
        parts = []
        for callback in self.descriptions:
            text = callback(opts)
            if text:
                parts.append(str(text).strip())
        return " ".join(part for part in parts if part)

    def import_filters(self, source: "FilterSet", filters_to_use: Optional[Iterable[Any]] = None) -> None:
        """
        Copy filter references and description callbacks from ``source``.

        ``filters_to_use`` may be a single name or a collection of names.
        Same-named local filters are overwritten. Descriptions are appended
        unless already present, so importing twice changes nothing.
        """
        if isinstance(filters_to_use, str):
            filters_to_use = [filters_to_use]
        allowed = None if filters_to_use is None else set(filters_to_use)
        for name, expression_filter in source.expression_filters.items():
            if allowed is None or name in allowed:
                self.expression_filters[name] = expression_filter
        for name, node_filter in source.node_filters.items():
            if allowed is None or name in allowed:
                self.node_filters[name] = node_filter
        for callback in source.descriptions:
            if callback not in self.descriptions:
                self.descriptions.append(callback)

    def unclaimed_options(self, options: Mapping[str, Any]) -> list:
        """Option keys left for pattern filters: not reserved and not named by a fixed filter."""
        claimed = {
            name
            for filters in (self.expression_filters, self.node_filters)
            for name, filter_ in filters.items()
            if not filter_.is_matcher
        }
        return [key for key in options if key not in RESERVED_QUERY_KEYS and key not in claimed]

    def apply_expression_filters(self, expression: Any, options: Mapping[str, Any]) -> Any:
        """Fold every applicable expression filter into ``expression``, in registration order."""
        unapplied = self.unclaimed_options(options)
        for name, expression_filter in self.expression_filters.items():
            if expression_filter.is_matcher:
                for option_name in [key for key in unapplied if expression_filter.handles_option(key)]:
                    unapplied.remove(option_name)
                    value = options[option_name]
                    if value is not None:
                        expression = expression_filter.apply_filter(expression, option_name, value)
                continue
            value = expression_filter.resolve(options, name)
            if value is not None:
                expression = expression_filter.apply_filter(expression, name, value)
        return expression

    def matches_node_filters(self, node: Any, options: Mapping[str, Any]) -> bool:
        """True when every applicable node filter accepts ``node``."""
        unapplied = self.unclaimed_options(options)
        for name, node_filter in self.node_filters.items():
            if node_filter.is_matcher:
                for option_name in [key for key in unapplied if node_filter.handles_option(key)]:
                    unapplied.remove(option_name)
                    value = options[option_name]
                    if value is not None and not node_filter.matches(node, option_name, value):
                        return False
                continue
            value = node_filter.resolve(options, name)
            if value is not None and not node_filter.matches(node, name, value):
                return False
        return True

    def _options_with_defaults(self, options: Mapping[str, Any]) -> dict:
        opts = dict(options)
        for filters in (self.expression_filters, self.node_filters):
            for name, filter_ in filters.items():
                if filter_.has_default and opts.get(name) is None:
                    opts[name] = filter_.default
        return opts

    def _add_filter(self, filter_class, name, body, types, matcher, options) -> None:
        options = dict(options)
        for filter_type in types:
            if filter_type not in FILTER_TYPES:
                raise ValueError(f"Unknown filter type '{filter_type}' for filter {name!r}")
            if filter_type == "boolean":
                options.setdefault("valid_values", BOOLEAN_VALUES)
        if "default" in options and (matcher is not None or not isinstance(name, str)):
            raise ValueError(f"default is not supported for pattern filters ({name!r})")

        filter_ = filter_class(name=name, body=body, matcher=matcher, **options)
        self.add(filter_)
        logger.debug(f"Filter set '{self.name}': added {filter_.kind.value} filter {filter_.display_name}")


class FilterSetRegistry:
    """Process-wide mapping from name to FilterSet."""

    def __init__(self):
        self._filter_sets: dict[str, FilterSet] = {}
        self._lock = threading.RLock()

    def __contains__(self, name: object) -> bool:
        return name in self._filter_sets

    def __len__(self) -> int:
        return len(self._filter_sets)

    def get_or_create(self, name: str, definition: Optional[Definition] = None) -> FilterSet:
        """
        Return the filter set registered as ``name``, creating it if needed.

        The definition only runs on creation; an existing set is returned
        unchanged.
        """
        with self._lock:
            existing = self._filter_sets.get(name)
            if existing is not None:
                return existing
            return self.add(name, definition)

    def add(self, name: str, definition: Optional[Definition] = None) -> FilterSet:
        """Build a fresh filter set and register it, replacing any previous one."""
        return self.register(FilterSet(name, definition))

    def register(self, filter_set: FilterSet) -> FilterSet:
        """Register an already built filter set under its name, replacing any previous one."""
        with self._lock:
            self._filter_sets[filter_set.name] = filter_set
            logger.debug(f"Registered filter set '{filter_set.name}'")
            return filter_set

    def get(self, name: str) -> FilterSet:
        """
        Look up a filter set that must already exist.

        Raises:
            UnknownFilterSetError: If nothing is registered as ``name``
        """
        try:
            return self._filter_sets[name]
        except KeyError:
            raise UnknownFilterSetError(name) from None

    def remove(self, name: str) -> None:
        with self._lock:
            self._filter_sets.pop(name, None)

    def all(self) -> Mapping[str, FilterSet]:
        """Read-only snapshot of every registered filter set."""
        with self._lock:
            return MappingProxyType(dict(self._filter_sets))

    def reset(self) -> None:
        """Forget every filter set."""
        with self._lock:
            self._filter_sets.clear()
