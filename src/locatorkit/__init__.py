"""Declarative selector registry: locators and options in, query expressions and filters out."""

__version__ = "0.1.0"

from locatorkit.config import Config, Visibility
from locatorkit.exceptions import (
    InvalidOptionValueError,
    LocatorKitError,
    SelectorDefinitionError,
    UnknownFilterSetError,
    UnknownSelectorError,
)
from locatorkit.filters import (
    ExpressionFilter,
    Filter,
    FilterKind,
    IdentityExpressionFilter,
    NodeFilter,
)
from locatorkit.filter_set import RESERVED_QUERY_KEYS, FilterSet, FilterSetRegistry
from locatorkit.selector import (
    ExpressionFormat,
    Selector,
    SelectorRegistry,
    find_by_attr,
    find_by_class_attr,
    locate_field,
)
from locatorkit.builtin import create_default_registry, register_builtin_selectors
from locatorkit.loader import load_selectors
from locatorkit.logging_config import setup_logging

__all__ = [
    # Configuration
    "Config",
    "Visibility",
    # Errors
    "LocatorKitError",
    "InvalidOptionValueError",
    "SelectorDefinitionError",
    "UnknownFilterSetError",
    "UnknownSelectorError",
    # Filters
    "Filter",
    "FilterKind",
    "ExpressionFilter",
    "IdentityExpressionFilter",
    "NodeFilter",
    "FilterSet",
    "FilterSetRegistry",
    "RESERVED_QUERY_KEYS",
    # Selectors
    "ExpressionFormat",
    "Selector",
    "SelectorRegistry",
    "locate_field",
    "find_by_attr",
    "find_by_class_attr",
    # Built-ins and loading
    "create_default_registry",
    "register_builtin_selectors",
    "load_selectors",
    # Logging
    "setup_logging",
]
