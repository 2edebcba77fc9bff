"""
Declarative selector definitions loaded from YAML.

A selector file looks like:

    selectors:
      - name: search_box
        label: search box
        css: 'input[type="search"][name={locator}]'
        options: [placeholder]
      - name: data_test
        xpath: './/*[@data-test = {locator}]'
        match: '^test:'
        visible: all
        filter_sets: [_field]          # or {_field: [disabled]}

``{locator}`` is replaced by the locator quoted for the selector's format.
"""

import logging
import re
from pathlib import Path
from typing import Any, Callable

import yaml

from . import expression as x
from .config import Visibility
from .exceptions import SelectorDefinitionError
from .selector import Selector, SelectorRegistry

logger = logging.getLogger(__name__)

LOCATOR_PLACEHOLDER = "{locator}"

KNOWN_KEYS = {"name", "label", "xpath", "css", "match", "visible", "filter_sets", "options"}


def load_selectors(path: Path | str, registry: SelectorRegistry) -> list[Selector]:
    """
    Register every selector defined in a YAML file.

    Args:
        path: Path to the YAML document
        registry: Registry the selectors are added to

    Returns:
        The registered selectors, in file order

    Raises:
        SelectorDefinitionError: If the file is not a valid selector document
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SelectorDefinitionError(f"Could not parse {path}: {e}") from e

    selectors = register_definitions(data, registry)
    logger.info(f"Loaded {len(selectors)} selectors from {path}")
    return selectors


def register_definitions(data: Any, registry: SelectorRegistry) -> list[Selector]:
    """Register selectors from an already parsed document."""
    entries = data.get("selectors") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise SelectorDefinitionError("Selector document must contain a 'selectors' list")

    # Validate everything before touching the registry
    entries = [_validate(entry) for entry in entries]
    _check_borrowed_filter_sets(entries, registry)
    definitions = [(entry["name"], _definition_from(entry)) for entry in entries]
    return [registry.add(name, definition) for name, definition in definitions]


def _validate(entry: Any) -> dict:
    if not isinstance(entry, dict):
        raise SelectorDefinitionError(f"Selector entry must be a mapping, got {entry!r}")

    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise SelectorDefinitionError(f"Selector entry is missing a name: {entry!r}")

    unknown = set(entry) - KNOWN_KEYS
    if unknown:
        raise SelectorDefinitionError(f"Selector '{name}' has unknown keys: {', '.join(sorted(unknown))}")

    if ("xpath" in entry) == ("css" in entry):
        raise SelectorDefinitionError(f"Selector '{name}' needs exactly one of 'xpath' or 'css'")

    if "match" in entry:
        try:
            re.compile(entry["match"])
        except (re.error, TypeError) as e:
            raise SelectorDefinitionError(f"Selector '{name}' has an invalid match pattern: {e}") from e

    if "visible" in entry:
        try:
            Visibility(entry["visible"])
        except ValueError as e:
            raise SelectorDefinitionError(f"Selector '{name}' has an invalid visible mode: {e}") from e

    options = entry.get("options", [])
    if not _is_name_list(options):
        raise SelectorDefinitionError(f"Selector '{name}' options must be a list of names")

    filter_sets = entry.get("filter_sets", [])
    if not isinstance(filter_sets, (list, dict)):
        raise SelectorDefinitionError(f"Selector '{name}' filter_sets must be a list or mapping")
    if isinstance(filter_sets, list) and not _is_name_list(filter_sets):
        raise SelectorDefinitionError(f"Selector '{name}' filter_sets must name filter sets")
    if isinstance(filter_sets, dict):
        for filter_set_name, filters_to_use in filter_sets.items():
            if filters_to_use is not None and not _is_name_list(filters_to_use):
                raise SelectorDefinitionError(
                    f"Selector '{name}' filters borrowed from '{filter_set_name}' must be a list of names"
                )

    return entry


def _is_name_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _check_borrowed_filter_sets(entries: list[dict], registry: SelectorRegistry) -> None:
    """Every borrowed filter set must exist already or belong to an earlier entry."""
    known = set(registry.filter_sets.all())
    for entry in entries:
        for filter_set_name in entry.get("filter_sets", []):
            if filter_set_name not in known:
                raise SelectorDefinitionError(
                    f"Selector '{entry['name']}' borrows unknown filter set '{filter_set_name}'"
                )
        known.add(entry["name"])


def _template_builder(template: str, quote: Callable[[Any], str], wrap: Callable[[str], Any]):
    def build(locator, options):
        quoted = quote("" if locator is None else locator)
        return wrap(template.replace(LOCATOR_PLACEHOLDER, quoted))

    return build


def _definition_from(entry: dict) -> Callable[[Selector], None]:
    options = entry.get("options", [])
    filter_sets = entry.get("filter_sets", [])
    if isinstance(filter_sets, list):
        filter_sets = {name: None for name in filter_sets}

    def define(s: Selector) -> None:
        if entry.get("label"):
            s.label(entry["label"])

        if "xpath" in entry:
            s.xpath(*options)(_template_builder(entry["xpath"], x.literal, x.XPath))
        else:
            s.css(*options)(_template_builder(entry["css"], x.css_escape, str))

        if "match" in entry:
            pattern = re.compile(entry["match"])
            s.match(lambda locator: isinstance(locator, str) and bool(pattern.search(locator)))

        if "visible" in entry:
            s.visible(entry["visible"])

        for filter_set_name, filters_to_use in filter_sets.items():
            s.borrow_filters(filter_set_name, filters_to_use)

    return define
