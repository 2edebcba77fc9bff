"""Unit tests for locatorkit configuration."""

import logging

import pytest

from locatorkit import expression as x
from locatorkit.builtin import create_default_registry
from locatorkit.config import Config, Visibility
from locatorkit.logging_config import PACKAGE_LOGGER, setup_logging
from locatorkit.selector import SelectorRegistry


class TestConfig:
    """Tests for Config."""

    def test_defaults(self):
        config = Config()

        assert config.ignore_hidden_elements is True
        assert config.enable_aria_label is False
        assert config.default_visibility is Visibility.VISIBLE

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LOCATORKIT_IGNORE_HIDDEN_ELEMENTS", "false")
        monkeypatch.setenv("LOCATORKIT_ENABLE_ARIA_LABEL", "yes")
        monkeypatch.setenv("LOCATORKIT_LOG_LEVEL", "DEBUG")

        config = Config.from_env()

        assert config.ignore_hidden_elements is False
        assert config.enable_aria_label is True
        assert config.log_level == "DEBUG"
        assert config.default_visibility is Visibility.ALL

    def test_from_env_unset(self, monkeypatch):
        for key in ("LOCATORKIT_IGNORE_HIDDEN_ELEMENTS", "LOCATORKIT_ENABLE_ARIA_LABEL", "LOCATORKIT_LOG_LEVEL"):
            monkeypatch.delenv(key, raising=False)

        assert Config.from_env() == Config()

    def test_to_dict(self):
        assert Config(log_level="WARNING").to_dict() == {
            "ignore_hidden_elements": True,
            "enable_aria_label": False,
            "log_level": "WARNING",
        }


class TestConfigInjection:
    """Tests for passing a Config through a registry."""

    @pytest.mark.parametrize("ignore_hidden, expected", [
        (True, Visibility.VISIBLE),
        (False, Visibility.ALL),
    ])
    def test_registry_config_sets_visibility_fallback(self, ignore_hidden, expected):
        registry = SelectorRegistry(config=Config(ignore_hidden_elements=ignore_hidden))
        selector = registry.add("heading")

        assert selector.config is registry.config
        assert selector.default_visibility() is expected

    def test_registry_reads_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("LOCATORKIT_IGNORE_HIDDEN_ELEMENTS", "false")

        assert SelectorRegistry().add("heading").default_visibility() is Visibility.ALL

    def test_aria_label_default_comes_from_config(self, parse_html):
        doc = parse_html('<html><body><input aria-label="Search" id="q"></body></html>')

        plain = create_default_registry(Config(enable_aria_label=False)).get("field")
        aria = create_default_registry(Config(enable_aria_label=True)).get("field")

        assert doc.xpath(x.to_xpath(plain.build("Search"))) == []
        assert [n.get("id") for n in doc.xpath(x.to_xpath(aria.build("Search")))] == ["q"]
        assert doc.xpath(x.to_xpath(aria.build("Search", enable_aria_label=False))) == []


class TestLogging:
    """Tests for setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_package_logger(self):
        logger = logging.getLogger(PACKAGE_LOGGER)
        handlers, level = logger.handlers[:], logger.level
        yield
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers = handlers
        logger.setLevel(level)

    def test_configures_package_logger_only(self, tmp_path):
        root_handlers = logging.getLogger().handlers[:]
        log_file = tmp_path / "logs" / "locatorkit.log"

        logger = setup_logging(level="debug", log_file=str(log_file))
        logging.getLogger("locatorkit.selector").debug("hello")

        assert logger is logging.getLogger(PACKAGE_LOGGER)
        assert logger.level == logging.DEBUG
        assert logging.getLogger().handlers == root_handlers
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()

    def test_level_defaults_to_config(self):
        logger = setup_logging(config=Config(log_level="WARNING"))

        assert logger.level == logging.WARNING

    def test_level_defaults_to_environment(self, monkeypatch):
        monkeypatch.setenv("LOCATORKIT_LOG_LEVEL", "ERROR")

        assert setup_logging().level == logging.ERROR

    def test_repeated_setup_replaces_handlers(self):
        logger = setup_logging(level="INFO")
        count = len(logger.handlers)
        setup_logging(level="INFO")

        assert len(logger.handlers) == count
