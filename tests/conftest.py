"""Shared fixtures for locatorkit tests."""

import lxml.html
import pytest

from locatorkit.builtin import create_default_registry
from locatorkit.filter_set import FilterSetRegistry
from locatorkit.selector import SelectorRegistry


@pytest.fixture
def filter_sets():
    """An empty filter set registry."""
    return FilterSetRegistry()


@pytest.fixture
def registry(filter_sets):
    """An empty selector registry sharing the filter_sets fixture."""
    return SelectorRegistry(filter_sets)


@pytest.fixture
def builtin_registry():
    """A registry holding only the built-in selectors."""
    return create_default_registry()


@pytest.fixture
def parse_html():
    """Parse an HTML document into an lxml root element."""
    def parse(markup: str):
        return lxml.html.document_fromstring(markup)
    return parse


@pytest.fixture
def element():
    """Parse a single HTML fragment into an lxml element."""
    def parse(markup: str):
        return lxml.html.fragment_fromstring(markup)
    return parse
