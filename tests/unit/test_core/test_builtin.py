"""Unit tests for the built-in selectors."""

import re

import pytest

from locatorkit import expression as x
from locatorkit.builtin import BUILTIN_SELECTORS, FIELD_FILTER_SET
from locatorkit.exceptions import InvalidOptionValueError


FORM = """
<html><body>
  <form>
    <label for="user_email">Email</label>
    <input id="user_email" name="user[email]" type="email" value="a@example.com">
    <label>Password <input id="pw" type="password"></label>
    <input type="submit" name="Email" value="Email">
    <input type="hidden" name="Email">
    <input id="terms" type="checkbox" value="yes" checked="checked">
    <input id="news" type="checkbox" value="no">
    <input id="locked" type="text" name="locked" disabled="disabled">
    <textarea id="bio" placeholder="About you">Hello</textarea>
    <select id="color" name="color">
      <option value="r" selected="selected">Red</option>
      <option value="g">Green</option>
    </select>
    <button id="save" type="submit">Save changes</button>
    <input type="submit" value="Cancel" title="Go back">
  </form>
  <a href="/home" id="home-link">Home</a>
  <a href="/help" title="Get help"><img alt="Help icon"></a>
  <a>Missing href</a>
  <fieldset id="billing"><legend>Billing</legend></fieldset>
  <table><caption>Totals</caption></table>
</body></html>
"""


@pytest.fixture
def doc(parse_html):
    return parse_html(FORM)


def _find(registry, doc, name, locator=None, **options):
    """Run a selector the way a query layer would: expression, then node filters."""
    selector = registry.get(name)
    expression = selector.build(locator, **options)
    candidates = doc.xpath(x.to_xpath(expression))
    return [node for node in candidates if selector.matches_filters(node, options)]


def _ids(nodes):
    return [node.get("id") for node in nodes]


class TestRegistration:
    """Tests for installing the built-ins."""

    def test_all_builtins_registered(self, builtin_registry):
        assert list(builtin_registry.all()) == [name for name, _ in BUILTIN_SELECTORS]

    def test_field_filter_set_registered(self, builtin_registry):
        field_set = builtin_registry.filter_sets.get(FIELD_FILTER_SET)

        assert set(field_set.node_filters) == {"checked", "unchecked", "disabled", "multiple"}

    def test_field_selectors_share_filters(self, builtin_registry):
        field = builtin_registry.get("field")
        checkbox = builtin_registry.get("checkbox")

        assert field.node_filters["checked"] is checkbox.node_filters["checked"]

    def test_button_borrows_only_disabled(self, builtin_registry):
        button = builtin_registry.get("button")

        assert "disabled" in button.node_filters
        assert "checked" not in button.node_filters


class TestAutoDetection:
    """Tests for detecting a selector from the locator."""

    @pytest.mark.parametrize("locator", ["//div", ".//a", "./p", "(//a)[1]"])
    def test_xpath_locators(self, builtin_registry, locator):
        assert builtin_registry.detect(locator).name == "xpath"

    def test_id_locator(self, builtin_registry):
        assert builtin_registry.detect("#home-link").name == "id"

    def test_plain_text_detects_nothing(self, builtin_registry):
        assert builtin_registry.detect("Home") is None


class TestFieldSelectors:
    """Tests for field, fillable_field and friends."""

    def test_field_by_label(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "field", "Email")) == ["user_email"]

    def test_field_wrapped_in_label(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "field", "Password")) == ["pw"]

    def test_field_by_placeholder(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "field", "About you")) == ["bio"]

    def test_field_type_option(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "field", None, type="textarea")) == ["bio"]
        assert _ids(_find(builtin_registry, doc, "field", None, type="password")) == ["pw"]

    def test_disabled_fields_excluded_by_default(self, builtin_registry, doc):
        assert _find(builtin_registry, doc, "field", "locked") == []
        assert _ids(_find(builtin_registry, doc, "field", "locked", disabled=True)) == ["locked"]
        assert _ids(_find(builtin_registry, doc, "field", "locked", disabled="all")) == ["locked"]

    def test_field_with_value(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "field", "Email", **{"with": "a@example.com"})) == ["user_email"]
        assert _find(builtin_registry, doc, "field", "Email", **{"with": "b@example.com"}) == []
        assert _ids(_find(builtin_registry, doc, "field", "bio", **{"with": re.compile("^Hel")})) == ["bio"]

    def test_fillable_field_skips_checkboxes(self, builtin_registry, doc):
        assert _find(builtin_registry, doc, "fillable_field", "terms") == []
        assert _ids(_find(builtin_registry, doc, "fillable_field", "user[email]")) == ["user_email"]

    def test_checkbox_checked_filters(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "checkbox", None, checked=True)) == ["terms"]
        assert _ids(_find(builtin_registry, doc, "checkbox", None, unchecked=True)) == ["news"]
        assert _ids(_find(builtin_registry, doc, "checkbox", None, option="no")) == ["news"]

    def test_checked_must_be_boolean(self, builtin_registry, doc):
        with pytest.raises(InvalidOptionValueError):
            _find(builtin_registry, doc, "checkbox", None, checked="yes")

    def test_select_options(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "select", "color", options=["Green", "Red"])) == ["color"]
        assert _ids(_find(builtin_registry, doc, "select", "color", with_options="Green")) == ["color"]
        assert _ids(_find(builtin_registry, doc, "select", "color", selected="Red")) == ["color"]
        assert _find(builtin_registry, doc, "select", "color", selected="Green") == []

    def test_field_description(self, builtin_registry):
        field = builtin_registry.get("field")

        assert field.description({}) == "field"
        assert field.description({"checked": True, "name": "q"}) == "field that is checked with name q"
        assert field.description({"disabled": True, "type": "text"}) == (
            "field that is disabled of type 'text' with type text"
        )


class TestOtherSelectors:
    """Tests for buttons, links and structural selectors."""

    def test_button_by_text_and_value(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "button", "Save changes")) == ["save"]
        assert [n.get("value") for n in _find(builtin_registry, doc, "button", "Cancel")] == ["Cancel"]

    def test_button_inexact(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "button", "Save", exact=False)) == ["save"]
        assert _find(builtin_registry, doc, "button", "Save") == []

    def test_link_requires_href_by_default(self, builtin_registry, doc):
        assert _find(builtin_registry, doc, "link", "Missing href") == []
        assert len(_find(builtin_registry, doc, "link", "Missing href", href=False)) == 1

    def test_link_by_img_alt_and_title(self, builtin_registry, doc):
        assert [n.get("href") for n in _find(builtin_registry, doc, "link", "Help icon")] == ["/help"]
        assert [n.get("href") for n in _find(builtin_registry, doc, "link", "Get help")] == ["/help"]

    def test_link_href_filter(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "link", None, href="/home")) == ["home-link"]

    def test_link_href_pattern(self, builtin_registry, doc):
        found = _find(builtin_registry, doc, "link", None, href=re.compile(r"^/h[eo]"))

        assert [n.get("href") for n in found] == ["/home", "/help"]
        assert _find(builtin_registry, doc, "link", None, href=re.compile("missing")) == []

    def test_link_href_rejects_true(self, builtin_registry, doc):
        with pytest.raises(InvalidOptionValueError):
            _find(builtin_registry, doc, "link", "Home", href=True)

    def test_element_attribute_filters(self, builtin_registry, doc):
        found = _find(builtin_registry, doc, "element", "input", type="checkbox", value="yes")

        assert _ids(found) == ["terms"]

    def test_label_for(self, builtin_registry, doc):
        assert len(_find(builtin_registry, doc, "label", "Email", **{"for": "user_email"})) == 1

    def test_fieldset_and_table(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "fieldset", "Billing")) == ["billing"]
        assert len(_find(builtin_registry, doc, "table", "Totals")) == 1

    def test_option_selected(self, builtin_registry, doc):
        assert [n.text for n in _find(builtin_registry, doc, "option", None, selected=True)] == ["Red"]

    def test_id_and_css(self, builtin_registry, doc):
        assert _ids(_find(builtin_registry, doc, "id", "#save")) == ["save"]
        assert builtin_registry.get("css").call("form > input") == "form > input"
