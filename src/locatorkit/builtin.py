"""
Built-in Selectors.

Standard selectors for common page elements, installed into a
SelectorRegistry by register_builtin_selectors():
- xpath, css, id: raw locators (xpath and id auto-detect their syntax)
- element: any tag, every extra option becomes an attribute constraint
- field, fillable_field, checkbox, radio_button, file_field, select:
  form fields found through locate_field(), sharing the ``_field`` filters
- button, link, label, fieldset, table, option

Node filters expect lxml-style element candidates (``get``, ``attrib``,
``iter``, ``itertext``).
"""

import logging
import operator
import re
from functools import reduce
from typing import Any, Iterable, Optional

from . import expression as x
from .config import Config
from .filter_set import FilterSet
from .selector import Selector, SelectorRegistry, find_by_attr, locate_field

logger = logging.getLogger(__name__)

XPATH_LOCATOR = re.compile(r"^(\.?/|\()")
ID_LOCATOR = re.compile(r"^#[A-Za-z_][\w-]*$")

FIELD_TAGS = ("input", "textarea", "select")
NON_FIELD_INPUT_TYPES = ("submit", "image", "hidden")
NON_FILLABLE_INPUT_TYPES = ("submit", "image", "radio", "checkbox", "hidden", "file")
BUTTON_INPUT_TYPES = ("submit", "reset", "image", "button")

FIELD_FILTER_SET = "_field"


def _any_of(predicates: Iterable[Any]) -> x.Predicate:
    return reduce(operator.or_, predicates)


def _type_in(types: Iterable[str]) -> x.Predicate:
    return _any_of(x.attr("type") == input_type for input_type in types)


def _has_attr(node: Any, name: str) -> bool:
    attrib = getattr(node, "attrib", None)
    if attrib is None:
        attrib = getattr(node, "attrs", {})
    return name in attrib


def _normalized_text(node: Any) -> str:
    return " ".join("".join(node.itertext()).split())


def _field_value(node: Any) -> Optional[str]:
    if getattr(node, "tag", None) == "textarea":
        return "".join(node.itertext())
    return node.get("value")


def _option_texts(node: Any, selected_only: bool = False) -> list[str]:
    return [
        _normalized_text(option)
        for option in node.iter("option")
        if not selected_only or _has_attr(option, "selected")
    ]


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _define_field_filters(fs: FilterSet) -> None:
    @fs.node_filter("checked", "boolean")
    def _(node, value):
        return _has_attr(node, "checked") == value

    @fs.node_filter("unchecked", "boolean")
    def _(node, value):
        return (not _has_attr(node, "checked")) == value

    @fs.node_filter("disabled", "boolean", default=False, skip_if="all")
    def _(node, value):
        return _has_attr(node, "disabled") == value

    @fs.node_filter("multiple", "boolean")
    def _(node, value):
        return _has_attr(node, "multiple") == value

    @fs.describe
    def _(options):
        states = []
        if options.get("checked") or options.get("unchecked") is False:
            states.append("checked")
        if options.get("unchecked") or options.get("checked") is False:
            states.append("not checked")
        if options.get("disabled") is True:
            states.append("disabled")
        desc = f"that is {' and '.join(states)}" if states else ""
        if options.get("multiple") is True:
            desc += " with the multiple attribute"
        elif options.get("multiple") is False:
            desc += " without the multiple attribute"
        return desc


def _define_xpath(s: Selector) -> None:
    @s.xpath()
    def _(locator, options):
        return x.XPath(str(locator))

    @s.match
    def _(locator):
        return isinstance(locator, str) and bool(XPATH_LOCATOR.match(locator))


def _define_id(s: Selector) -> None:
    s.label("element with id")

    @s.xpath()
    def _(locator, options):
        return x.descendant()[x.attr("id") == str(locator).lstrip("#")]

    @s.match
    def _(locator):
        return isinstance(locator, str) and bool(ID_LOCATOR.match(locator))


def _define_css(s: Selector) -> None:
    @s.css()
    def _(locator, options):
        return str(locator)


def _define_element(s: Selector) -> None:
    s.label("element")

    @s.xpath()
    def _(locator, options):
        return x.descendant(*([str(locator)] if locator else []))

    @s.expression_filter("attributes", matcher=re.compile(r".+"))
    def _(xpath, name, value):
        if value is True:
            return xpath[x.attr(name)]
        if value is False:
            return xpath[~x.attr(name)]
        return xpath[x.attr(name) == value]


def _aria_enabled(s: Selector, options: dict) -> bool:
    enabled = options.get("enable_aria_label")
    return s.config.enable_aria_label if enabled is None else bool(enabled)


def _define_field(s: Selector) -> None:
    s.label("field")

    @s.xpath("name", "placeholder", "type", "enable_aria_label")
    def _(locator, options):
        xpath = x.descendant(*FIELD_TAGS)[~_type_in(NON_FIELD_INPUT_TYPES)]
        xpath = locate_field(xpath, locator, enable_aria_label=_aria_enabled(s, options))
        xpath = xpath[find_by_attr("name", options.get("name"))]
        xpath = xpath[find_by_attr("placeholder", options.get("placeholder"))]
        field_type = options.get("type")
        if field_type in ("textarea", "select"):
            xpath = xpath[x.Predicate(f"self::{field_type}")]
        elif field_type:
            xpath = xpath[x.attr("type") == field_type]
        return xpath

    @s.node_filter("readonly", "boolean")
    def _(node, value):
        return _has_attr(node, "readonly") == value

    @s.node_filter("with")
    def _(node, value):
        if isinstance(value, re.Pattern):
            return bool(value.search(_field_value(node) or ""))
        return _field_value(node) == str(value)

    s.borrow_filters(FIELD_FILTER_SET)

    @s.describe
    def _(options):
        desc = ""
        if options.get("type"):
            desc += f"of type {options['type']!r}"
        if options.get("with") is not None:
            desc += f" with value {options['with']!r}"
        return desc


def _define_fillable_field(s: Selector) -> None:
    s.label("fillable field")

    @s.xpath("name", "placeholder", "enable_aria_label")
    def _(locator, options):
        xpath = x.descendant("input", "textarea")[~_type_in(NON_FILLABLE_INPUT_TYPES)]
        xpath = locate_field(xpath, locator, enable_aria_label=_aria_enabled(s, options))
        xpath = xpath[find_by_attr("name", options.get("name"))]
        return xpath[find_by_attr("placeholder", options.get("placeholder"))]

    @s.node_filter("with")
    def _(node, value):
        if isinstance(value, re.Pattern):
            return bool(value.search(_field_value(node) or ""))
        return _field_value(node) == str(value)

    s.borrow_filters(FIELD_FILTER_SET, ["disabled"])


def _checkable(input_type: str, label: str):
    def define(s: Selector) -> None:
        s.label(label)

        @s.xpath("name", "enable_aria_label")
        def _(locator, options):
            xpath = x.descendant("input")[x.attr("type") == input_type]
            xpath = locate_field(xpath, locator, enable_aria_label=_aria_enabled(s, options))
            return xpath[find_by_attr("name", options.get("name"))]

        @s.node_filter("option")
        def _(node, value):
            return node.get("value") == str(value)

        s.borrow_filters(FIELD_FILTER_SET)

        @s.describe
        def _(options):
            if options.get("option") is not None:
                return f"with value {options['option']!r}"
            return ""

    return define


def _define_file_field(s: Selector) -> None:
    s.label("file field")

    @s.xpath("name", "enable_aria_label")
    def _(locator, options):
        xpath = x.descendant("input")[x.attr("type") == "file"]
        xpath = locate_field(xpath, locator, enable_aria_label=_aria_enabled(s, options))
        return xpath[find_by_attr("name", options.get("name"))]

    s.borrow_filters(FIELD_FILTER_SET)


def _define_select(s: Selector) -> None:
    s.label("select box")

    @s.xpath("name", "placeholder", "enable_aria_label")
    def _(locator, options):
        xpath = x.descendant("select")
        xpath = locate_field(xpath, locator, enable_aria_label=_aria_enabled(s, options))
        xpath = xpath[find_by_attr("name", options.get("name"))]
        return xpath[find_by_attr("placeholder", options.get("placeholder"))]

    @s.node_filter("options")
    def _(node, value):
        return sorted(_option_texts(node)) == sorted(_as_list(value))

    @s.node_filter("with_options")
    def _(node, value):
        texts = _option_texts(node)
        return all(option in texts for option in _as_list(value))

    @s.node_filter("selected")
    def _(node, value):
        return sorted(_option_texts(node, selected_only=True)) == sorted(_as_list(value))

    s.borrow_filters(FIELD_FILTER_SET)

    @s.describe
    def _(options):
        parts = []
        if options.get("options") is not None:
            parts.append(f"with options {_as_list(options['options'])!r}")
        if options.get("with_options") is not None:
            parts.append(f"with at least options {_as_list(options['with_options'])!r}")
        if options.get("selected") is not None:
            parts.append(f"with {_as_list(options['selected'])!r} selected")
        return " ".join(parts)


def _define_button(s: Selector) -> None:
    s.label("button")

    @s.xpath()
    def _(locator, options):
        input_button = x.descendant("input")[_type_in(BUTTON_INPUT_TYPES)]
        button = x.descendant("button")
        if locator is None:
            return input_button.union(button)

        locator = str(locator)
        exact = options.get("exact") is not False
        input_button = input_button[_any_of([
            x.attr("id") == locator,
            x.attr("name") == locator,
            x.attr("value").is_(locator, exact),
            x.attr("title").is_(locator, exact),
            (x.attr("type") == "image") & x.attr("alt").is_(locator, exact),
        ])]
        button = button[_any_of([
            x.attr("id") == locator,
            x.attr("name") == locator,
            x.attr("value").is_(locator, exact),
            x.attr("title").is_(locator, exact),
            x.string_n().is_(locator, exact),
        ])]
        return input_button.union(button)

    s.borrow_filters(FIELD_FILTER_SET, ["disabled"])


def _define_link(s: Selector) -> None:
    s.label("link")

    @s.xpath("title", "alt")
    def _(locator, options):
        xpath = x.descendant("a")
        if options.get("href") is None:
            xpath = xpath[x.attr("href")]
        if locator is not None:
            locator = str(locator)
            exact = options.get("exact") is not False
            xpath = xpath[_any_of([
                x.attr("id") == locator,
                x.string_n().is_(locator, exact),
                x.attr("title").is_(locator, exact),
                x.descendant("img")[x.attr("alt").is_(locator, exact)],
            ])]
        xpath = xpath[find_by_attr("title", options.get("title"))]
        if options.get("alt"):
            xpath = xpath[x.descendant("img")[x.attr("alt") == options["alt"]]]
        return xpath

    @s.expression_filter("href", valid_values=[str, re.Pattern, False])
    def _(xpath, value):
        if value is False:
            return xpath
        if isinstance(value, re.Pattern):
            return xpath[x.attr("href")]
        return xpath[x.attr("href") == value]

    # Pattern hrefs are matched against each candidate
    @s.node_filter("href")
    def _(node, value):
        if isinstance(value, re.Pattern):
            return bool(value.search(node.get("href") or ""))
        return True


def _define_label(s: Selector) -> None:
    s.label("label")

    @s.xpath()
    def _(locator, options):
        xpath = x.descendant("label")
        if locator is not None:
            locator = str(locator)
            xpath = xpath[(x.string_n().is_(locator)) | (x.attr("id") == locator)]
        return xpath

    @s.expression_filter("for", valid_values=[str])
    def _(xpath, value):
        return xpath[x.attr("for") == value]


def _define_fieldset(s: Selector) -> None:
    s.label("fieldset")

    @s.xpath()
    def _(locator, options):
        xpath = x.descendant("fieldset")
        if locator is not None:
            locator = str(locator)
            xpath = xpath[(x.attr("id") == locator) | x.XPath("./legend")[x.string_n().is_(locator)]]
        return xpath


def _define_table(s: Selector) -> None:
    s.label("table")

    @s.xpath("caption")
    def _(locator, options):
        xpath = x.descendant("table")
        if locator is not None:
            locator = str(locator)
            xpath = xpath[(x.attr("id") == locator) | x.descendant("caption")[x.string_n().is_(locator)]]
        if options.get("caption"):
            xpath = xpath[x.descendant("caption")[x.string_n() == options["caption"]]]
        return xpath


def _define_option(s: Selector) -> None:
    s.label("option")

    @s.xpath()
    def _(locator, options):
        xpath = x.descendant("option")
        if locator is not None:
            xpath = xpath[x.string_n().is_(str(locator))]
        return xpath

    @s.node_filter("disabled", "boolean")
    def _(node, value):
        return _has_attr(node, "disabled") == value

    @s.node_filter("selected", "boolean")
    def _(node, value):
        return _has_attr(node, "selected") == value


BUILTIN_SELECTORS = (
    ("xpath", _define_xpath),
    ("id", _define_id),
    ("css", _define_css),
    ("element", _define_element),
    ("field", _define_field),
    ("fillable_field", _define_fillable_field),
    ("checkbox", _checkable("checkbox", "checkbox")),
    ("radio_button", _checkable("radio", "radio button")),
    ("file_field", _define_file_field),
    ("select", _define_select),
    ("button", _define_button),
    ("link", _define_link),
    ("label", _define_label),
    ("fieldset", _define_fieldset),
    ("table", _define_table),
    ("option", _define_option),
)


def register_builtin_selectors(registry: SelectorRegistry) -> SelectorRegistry:
    """Install the ``_field`` filter set and every built-in selector into ``registry``."""
    registry.filter_sets.get_or_create(FIELD_FILTER_SET, _define_field_filters)
    for name, definition in BUILTIN_SELECTORS:
        registry.add(name, definition)
    logger.debug(f"Registered {len(BUILTIN_SELECTORS)} built-in selectors")
    return registry


def create_default_registry(config: Optional[Config] = None) -> SelectorRegistry:
    """A fresh registry holding only the built-in selectors."""
    return register_builtin_selectors(SelectorRegistry(config=config))
