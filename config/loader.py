"""Configuration file loader and validator.

Handles reading, formatting, and validating settings from the INI configuration file.
Raises exceptions for any issues encountered during loading.
"""

from __future__ import annotations

import ast
import configparser
import os
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from models.config_models import Config
from models.re_models import LANGUAGE_CODE_PATTERN
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from dataclasses import Field as DataclassField
else:
    from dataclasses import Field as DataclassField

__all__: list[str] = [
    "API_KEY_ENV",
    "Config",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

API_KEY_ENV: Final[str] = "BACKEND_API_KEY"

ALLOWED_TRANSPORTS: list[str] = ["edge_function"]

KNOWN_ATTRIBUTES: list[str] = ["title", "alt", "placeholder", "aria-label", "data-tooltip"]

# (section, key) pairs that must be strictly positive
POSITIVE_SETTINGS: list[tuple[str, str]] = [
    ("BACKEND", "TIMEOUT"),
    ("TRANSLATION", "BATCH_SIZE"),
    ("TRANSLATION", "MAX_ATTEMPTS"),
    ("TRANSLATION", "RESULT_TTL"),
    ("CACHE", "TTL_HOURS"),
    ("CACHE", "CAPACITY"),
    ("CACHE", "WARM_LIMIT"),
    ("SCANNER", "MIN_LENGTH"),
    ("SWITCH", "SWEEP_INTERVAL"),
]

# (section, key) pairs that may be zero but not negative
NON_NEGATIVE_SETTINGS: list[tuple[str, str]] = [
    ("TRANSLATION", "BASE_DELAY"),
    ("TRANSLATION", "MAX_JITTER"),
    ("CACHE", "WARM_COOLDOWN"),
    ("SWITCH", "DEBOUNCE"),
    ("SWITCH", "MUTATION_DEBOUNCE"),
]


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Handles loading and validation of configuration settings.

    This class reads the configuration file, applies formatting rules, and validates settings.
    The backend API key is taken from the ``BACKEND_API_KEY`` environment variable only.

    Args:
        config_filename (str): INI file name to load.
        script_name (str): Executing script name, used in error messaging.
        debug (bool): Optional override enabling debug logging.
        base_url (str | None): Optional override for the backend base URL.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str,
        script_name: str,
        **args,
    ) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' in the same directory as '{script_name}'."
            )
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser()

        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config = Config()
        self._convert_settings(parser)
        self._apply_api_key(parser)
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True
        if args.get("base_url") is not None:
            self.config.BACKEND.BASE_URL = args["base_url"]
        self._validate_settings()

    def _convert_settings(self, parser: ConfigParser) -> None:
        """Convert every known section of the parser into the Config object.

        Raises:
            ConfigFormatError: If a value cannot be parsed or coerced to the expected type.
        """
        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if not parser.has_section(section.name):
                logger.debug("Skipping undefined section: '%s'", section.name)
                continue
            self._convert_section_field(parser, formatter, section)

    def _convert_section_field(
        self, parser: ConfigParser, formatter: _ConfigFormatter, section: DataclassField[Any]
    ) -> None:
        """Convert all fields in a configuration section.

        Args:
            parser (ConfigParser): Parsed INI data.
            formatter (_ConfigFormatter): Formatter used to coerce string values to typed values.
            section (Field[Any]): Target configuration section dataclass field.

        Raises:
            ConfigFormatError: If a value fails to format correctly.
        """
        for key in fields(getattr(self.config, section.name)):
            if not parser.has_option(section.name, key.name):
                logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                continue

            formatted_value = formatter.apply_format(section, key)
            setattr(getattr(self.config, section.name), key.name, formatted_value)

    def _apply_api_key(self, parser: ConfigParser) -> None:
        """Take the backend API key from the environment, ignoring any value in the file."""
        if parser.has_option("BACKEND", "API_KEY"):
            logger.warning("'BACKEND.API_KEY' must not be stored in the configuration file; the value is ignored.")
        self.config.BACKEND.API_KEY = os.environ.get(API_KEY_ENV, "")
        if self.config.BACKEND.BASE_URL and not self.config.BACKEND.API_KEY:
            logger.warning("Environment variable '%s' is not set; backend requests are sent unauthenticated.", API_KEY_ENV)

    def _validate_settings(self) -> None:
        """Validate language codes, numeric ranges, transport and scanner attributes.

        Raises:
            ConfigFormatError: If validation fails for any setting.
        """
        try:
            self._validate_languages()
            for section_name, key_name in POSITIVE_SETTINGS:
                self._validate_number(section_name, key_name, allow_zero=False)
            for section_name, key_name in NON_NEGATIVE_SETTINGS:
                self._validate_number(section_name, key_name, allow_zero=True)
            self._validate_eviction_ratio()
            self._validate_transport()
            self._inspect_defined_item("SCANNER", "ATTRIBUTES", KNOWN_ATTRIBUTES)
        except (AttributeError, TypeError, ValueError) as err:
            msg: str = f"Invalid configuration value: {err}"
            raise ConfigFormatError(msg) from None

    def _validate_languages(self) -> None:
        """Validate the source language and the supported language list.

        Raises:
            ConfigValueError: If a language code is malformed.
            ConfigTypeError: If SUPPORTED_LANGUAGES is not a list.
        """
        source: str = self.config.GENERAL.SOURCE_LANGUAGE
        supported: list[str] = self.config.GENERAL.SUPPORTED_LANGUAGES
        if not isinstance(supported, list):
            msg: str = f"Unsupported type used for 'GENERAL.SUPPORTED_LANGUAGES': {type(supported)}"
            raise ConfigTypeError(msg)

        for code in [source, *supported]:
            if not isinstance(code, str) or not LANGUAGE_CODE_PATTERN.match(code):
                msg = f"Invalid language code: '{code}'"
                raise ConfigValueError(msg)

        if source not in supported:
            logger.warning("'GENERAL.SOURCE_LANGUAGE' (%s) is not in SUPPORTED_LANGUAGES; adding it.", source)
            supported.insert(0, source)

    def _validate_number(self, section_name: str, key_name: str, *, allow_zero: bool) -> None:
        value: float = getattr(getattr(self.config, section_name), key_name)
        field_name: str = f"{section_name}.{key_name}"
        if value < 0 or (value == 0 and not allow_zero):
            expected: str = "zero or greater" if allow_zero else "greater than zero"
            msg: str = f"'{field_name}' must be {expected}: {value}"
            raise ConfigValueError(msg)

    def _validate_eviction_ratio(self) -> None:
        ratio: float = self.config.CACHE.EVICTION_RATIO
        if not 0 < ratio <= 1:
            msg: str = f"'CACHE.EVICTION_RATIO' must be in (0, 1]: {ratio}"
            raise ConfigValueError(msg)

    def _validate_transport(self) -> None:
        transport: str = self.config.BACKEND.TRANSPORT
        if transport not in ALLOWED_TRANSPORTS:
            msg: str = f"Unsupported transport used for 'BACKEND.TRANSPORT': {transport}"
            raise ConfigValueError(msg)

    def _inspect_defined_item(self, section_name: str, key_name: str, defined_list: list[str]) -> None:
        """Verify that configuration values match known options.

        Logs warnings for unrecognized values but does not raise exceptions.

        Args:
            section_name (str): Section name in the config model.
            key_name (str): Field name to inspect.
            defined_list (list[str]): Known values.

        Raises:
            ConfigTypeError: If the configured value is neither list nor str.
        """
        value: str | list[str] = getattr(getattr(self.config, section_name), key_name)
        field_name: str = f"{section_name}.{key_name}"

        if isinstance(value, (list, str)):
            values: list[str] = value if isinstance(value, list) else [value]
            for val in values:
                if val not in defined_list:
                    logger.warning("Unknown value '%s' is set for '%s'", val, field_name)
        else:
            msg: str = f"Unsupported type used for '{field_name}': {type(value)}"
            raise ConfigTypeError(msg)


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, str, list)."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Convert INI value to the expected Python type based on the Config field type.

        Args:
            section (DataclassField[Any]): Configuration section field containing the key.
            key (DataclassField[Any]): Target field within the section.

        Returns:
            Any: Parsed value coerced to the type declared in the config dataclass.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If an unexpected type is encountered during coercion.
        """
        formatters: dict[
            type[bool | int | float], Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float]
        ] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
        }

        default_value: Any = getattr(getattr(self.config, section.name), key.name)
        formatter: Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float] | None = formatters.get(
            type(default_value)
        )
        if formatter:
            try:
                return formatter(section, key)
            except ValueError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigValueError(msg) from err
            except TypeError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigTypeError(msg) from err

        value_str: str = self.parser[section.name][key.name]
        try:
            value: Any = ast.literal_eval(value_str)
        except ValueError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigFormatError(msg) from err

        if not isinstance(value, type(default_value)):
            msg = f"Expected {type(default_value).__name__} for {section.name}.{key.name}, got {type(value).__name__}"
            raise ConfigTypeError(msg)
        return value

    def parse_as_float(self, section: DataclassField[Any], key: DataclassField[Any]) -> float:
        """Convert INI string to float."""
        value: str = self.parser.get(section.name, key.name)
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return float(value)

    def parse_as_integer(self, section: DataclassField[Any], key: DataclassField[Any]) -> int:
        """Convert INI string to integer."""
        value: str = self.parser.get(section.name, key.name)
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return int(float(value))

    def parse_as_boolean(self, section: DataclassField[Any], key: DataclassField[Any]) -> bool:
        """Convert INI string to boolean."""
        return self.parser.getboolean(section.name, key.name)
