"""Custom exceptions for locatorkit."""

from typing import Any


class LocatorKitError(Exception):
    """Base class for all locatorkit exceptions."""

    pass


class InvalidOptionValueError(LocatorKitError, ValueError):
    """Raised when an option value is outside a filter's valid values."""

    def __init__(self, filter_name: str, option_name: str, value: Any, valid_values: tuple = ()):
        """Initialize invalid option value error.

        Args:
            filter_name: Name (or pattern) of the filter that rejected the value
            option_name: Option key the value was supplied under
            value: The offending value
            valid_values: The values the filter accepts

        """
        self.filter_name = filter_name
        self.option_name = option_name
        self.value = value
        self.valid_values = valid_values
        target = option_name if option_name == filter_name else f"{option_name} ({filter_name})"
        super().__init__(f"Invalid value {value!r} passed to filter {target}")


class UnknownSelectorError(LocatorKitError, KeyError):
    """Raised when updating a selector that was never registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No selector registered as '{name}'")

    def __str__(self) -> str:
        return self.args[0]


class UnknownFilterSetError(LocatorKitError, KeyError):
    """Raised when borrowing from a filter set that does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No filter set registered as '{name}'")

    def __str__(self) -> str:
        return self.args[0]


class SelectorDefinitionError(LocatorKitError):
    """Raised when a declarative selector definition is malformed."""

    pass
