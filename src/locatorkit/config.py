from dotenv import load_dotenv
from dataclasses import dataclass
from enum import Enum
import os

load_dotenv()  # Loads variables from .env file


class Visibility(str, Enum):
    """Visibility modes a selector can default to."""
    ALL = "all"  # visible and invisible elements
    HIDDEN = "hidden"  # invisible elements only
    VISIBLE = "visible"  # visible elements only


def _env_flag(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """
    Settings a SelectorRegistry hands to every selector it builds.

    ignore_hidden_elements: visibility fallback when neither the selector
        nor the caller picks one (``visible`` when true, ``all`` when false)
    enable_aria_label: default for the field selectors' ``enable_aria_label``
    log_level: level used by setup_logging() when none is given
    """
    ignore_hidden_elements: bool = True
    enable_aria_label: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Reads LOCATORKIT_IGNORE_HIDDEN_ELEMENTS, LOCATORKIT_ENABLE_ARIA_LABEL
        and LOCATORKIT_LOG_LEVEL.

        Returns:
            Config: Configuration instance with values from environment
        """
        return cls(
            ignore_hidden_elements=_env_flag("LOCATORKIT_IGNORE_HIDDEN_ELEMENTS", True),
            enable_aria_label=_env_flag("LOCATORKIT_ENABLE_ARIA_LABEL", False),
            log_level=os.getenv("LOCATORKIT_LOG_LEVEL", "INFO"),
        )

    @property
    def default_visibility(self) -> Visibility:
        return Visibility.VISIBLE if self.ignore_hidden_elements else Visibility.ALL

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }
