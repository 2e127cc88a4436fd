"""Pricing defaults storage for orderdesk."""

import json
import logging
import os
import tempfile
from dataclasses import fields
from pathlib import Path
from typing import Any

from .errors import (
    ConfigExistsError,
    ConfigNotFoundError,
    InvalidConfigFieldError,
    InvalidSchemaVersionError,
)
from .models import PricingDefaults, _utc_now

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# Can be overridden via ORDERDESK_DATA_DIR environment variable
_default_data_dir = Path(__file__).parent.parent.parent / "data"
DATA_DIR = Path(os.environ.get("ORDERDESK_DATA_DIR", _default_data_dir))
CONFIG_FILE = "pricing_defaults.json"

# Fields an operator may change; timestamps are managed by the store.
EDITABLE_FIELDS = tuple(
    f.name for f in fields(PricingDefaults) if f.name not in ("created_at", "updated_at")
)


class ConfigStore:
    """Manages reading and writing the store-wide pricing defaults."""

    def __init__(self, config_dir: Path | None = None):
        """
        Initialize ConfigStore.

        Args:
            config_dir: Override config directory (for testing).
        """
        self.config_dir = Path(config_dir) if config_dir else DATA_DIR
        self.config_path = self.config_dir / CONFIG_FILE

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()

    def load(self) -> PricingDefaults:
        """
        Load pricing defaults from disk.

        Raises:
            ConfigNotFoundError: If config doesn't exist.
            InvalidSchemaVersionError: If schema version is unsupported.
        """
        if not self.exists():
            raise ConfigNotFoundError(str(self.config_path))

        with open(self.config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        version = data.get("schema_version", 0)
        if version != SCHEMA_VERSION:
            raise InvalidSchemaVersionError(version, SCHEMA_VERSION)

        return PricingDefaults.from_dict(data.get("defaults", {}))

    def load_or_default(self) -> PricingDefaults:
        """Load pricing defaults, falling back to built-in values when none are saved."""
        if not self.exists():
            logger.debug("No pricing defaults at %s, using built-in values", self.config_path)
            return PricingDefaults()
        return self.load()

    def save(self, defaults: PricingDefaults) -> None:
        """
        Save pricing defaults to disk atomically.

        Uses write-to-temp-then-rename for atomicity.
        """
        self.config_dir.mkdir(parents=True, exist_ok=True)

        defaults.updated_at = _utc_now()

        data = {"schema_version": SCHEMA_VERSION, "defaults": defaults.to_dict()}
        fd, temp_path = tempfile.mkstemp(
            dir=self.config_dir, prefix=".pricing_defaults_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")  # trailing newline
            os.replace(temp_path, self.config_path)
        except Exception:
            # Clean up temp file on failure (ignore errors if already removed)
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

        logger.info("Saved pricing defaults to %s", self.config_path)

    def init(self, force: bool = False, **overrides: Any) -> PricingDefaults:
        """
        Initialize pricing defaults.

        Args:
            force: If True, overwrite existing config.
            **overrides: Initial values for editable fields.

        Returns:
            The created PricingDefaults.

        Raises:
            ConfigExistsError: If config exists and force=False.
            InvalidConfigFieldError: If an override names an unknown field.
        """
        if self.exists() and not force:
            raise ConfigExistsError(str(self.config_path))

        defaults = PricingDefaults()
        self._apply(defaults, overrides)
        self.save(defaults)
        return defaults

    def update(self, **changes: Any) -> PricingDefaults:
        """
        Change some pricing defaults.

        Raises:
            ConfigNotFoundError: If config doesn't exist.
            InvalidConfigFieldError: If a change names an unknown field.
        """
        defaults = self.load()
        self._apply(defaults, changes)
        self.save(defaults)
        return defaults

    @staticmethod
    def _apply(defaults: PricingDefaults, changes: dict[str, Any]) -> None:
        for name, value in changes.items():
            if name not in EDITABLE_FIELDS:
                raise InvalidConfigFieldError(name)
            if name == "currency":
                value = str(value).upper()
            else:
                try:
                    value = float(value)
                except (TypeError, ValueError):
                    raise InvalidConfigFieldError(name, f"expected a number, got {value!r}") from None
            setattr(defaults, name, value)
