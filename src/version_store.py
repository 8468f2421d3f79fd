"""Version counters persisted in the settings record (settings.json)."""
import json
import logging
import os
from typing import Any, Dict, NamedTuple, Optional

import jsonschema

from src.logging_config import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

DEFAULT_VERSION = "v1.0.0.0"
VERSION_FIELD = "version"
I18N_VERSION_FIELD = "i18nVersion"

# Each component rolls over at this value and carries into the next one.
CARRY_THRESHOLD = 10

SETTINGS_SCHEMA = {
    "type": "object",
    "properties": {
        VERSION_FIELD: {"type": "string", "pattern": r"^v?\d+(\.\d+){0,3}$"},
        I18N_VERSION_FIELD: {"type": "string", "pattern": r"^v?\d+(\.\d+){0,3}$"},
    },
}


class Version(NamedTuple):
    major: int = 1
    minor: int = 0
    patch: int = 0
    build: int = 0

    @classmethod
    def parse(cls, text: str) -> "Version":
        """
        Parse a version string such as ``v1.0.2.7``.

        A leading ``v`` is optional. Missing trailing components default to 0.

        Raises:
            ValueError: If a component is not a non-negative integer or there
                are more than four components.
        """
        parts = text.strip()
        if parts.startswith('v'):
            parts = parts[1:]
        components = [int(part) for part in parts.split('.')]
        if len(components) > 4 or any(component < 0 for component in components):
            raise ValueError(f"Invalid version string: {text!r}")
        while len(components) < 4:
            components.append(0)
        return cls(*components)

    def increment(self) -> "Version":
        """Add one build unit, carrying into the more significant components."""
        components = list(self)
        components[3] += 1
        for index in range(3, 0, -1):
            if components[index] < CARRY_THRESHOLD:
                break
            components[index] = 0
            components[index - 1] += 1
        return Version(*components)

    def __str__(self) -> str:
        return "v" + ".".join(str(component) for component in self)


def increment_version(version: str) -> str:
    """
    Increment a version string.

    Format: v1.0.0.1 -> v1.0.0.2
            v1.0.0.9 -> v1.0.1.0
            v1.0.9.9 -> v1.1.0.0
    """
    return str(Version.parse(version).increment())


class SettingsStore:
    """
    Read and write the version fields of the settings record.

    The record is a JSON object; each pipeline owns one field and a write
    replaces only that field.
    """

    def __init__(self, settings_file_path: str):
        self.settings_file_path = settings_file_path
        # Message of the last failed read, None when it succeeded.
        self.read_error: Optional[str] = None

    def _load_record(self) -> Dict[str, Any]:
        with open(self.settings_file_path, 'r', encoding='utf-8') as f:
            record = json.load(f)
        jsonschema.validate(instance=record, schema=SETTINGS_SCHEMA)
        return record

    def read(self, field: str) -> str:
        """Return the stored version for ``field``, or the default version."""
        self.read_error = None
        if not os.path.exists(self.settings_file_path):
            return DEFAULT_VERSION
        try:
            record = self._load_record()
        except (OSError, json.JSONDecodeError) as e:
            self.read_error = f"Could not read version file: {e}"
            logger.warning(self.read_error)
            return DEFAULT_VERSION
        except jsonschema.ValidationError as e:
            self.read_error = f"Ignoring invalid settings file '{self.settings_file_path}': {e.message}"
            logger.warning(self.read_error)
            return DEFAULT_VERSION
        return record.get(field) or DEFAULT_VERSION

    def write(self, field: str, version: str) -> bool:
        """
        Store ``version`` under ``field``, keeping every other field.

        Returns:
            bool: True on success. Failures are logged, not raised.
        """
        record: Dict[str, Any] = {}
        if os.path.exists(self.settings_file_path):
            try:
                with open(self.settings_file_path, 'r', encoding='utf-8') as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    record = loaded
                else:
                    logger.warning(f"Settings file '{self.settings_file_path}' is not a JSON object; replacing it.")
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Error writing version file: {e}")
                return False

        record[field] = version
        try:
            settings_dir = os.path.dirname(self.settings_file_path)
            if settings_dir:
                os.makedirs(settings_dir, exist_ok=True)
            with open(self.settings_file_path, 'w', encoding='utf-8') as f:
                json.dump(record, f, indent=2)
        except OSError as e:
            logger.error(f"Error writing version file: {e}")
            return False

        logger.info(f"{field} updated to: {version}")
        return True

    def read_version(self) -> str:
        return self.read(VERSION_FIELD)

    def read_i18n_version(self) -> str:
        return self.read(I18N_VERSION_FIELD)
