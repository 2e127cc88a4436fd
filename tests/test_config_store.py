"""Tests for ConfigStore."""

import json

import pytest

from orderdesk.config_store import CONFIG_FILE, ConfigStore
from orderdesk.errors import (
    ConfigExistsError,
    ConfigNotFoundError,
    InvalidConfigFieldError,
    InvalidSchemaVersionError,
)


class TestConfigStore:
    """Tests for ConfigStore class."""

    def test_init_creates_config(self, temp_dir):
        store = ConfigStore(temp_dir)
        defaults = store.init()

        assert store.exists()
        assert defaults.cgst_rate == 9.0
        assert defaults.igst_rate == 18.0
        assert defaults.currency == "INR"

        data = json.loads((temp_dir / CONFIG_FILE).read_text())
        assert data["schema_version"] == 1
        assert data["defaults"]["sgst_rate"] == 9.0

    def test_init_with_overrides(self, temp_dir):
        store = ConfigStore(temp_dir)
        defaults = store.init(cod_charge="49", shipping_charge=60)

        assert defaults.cod_charge == 49.0
        assert defaults.shipping_charge == 60.0
        assert store.load().cod_charge == 49.0

    def test_init_force_overwrites(self, temp_dir):
        store = ConfigStore(temp_dir)
        store.init(cgst_rate=6)
        defaults = store.init(force=True)

        assert defaults.cgst_rate == 9.0

    def test_init_without_force_raises(self, temp_dir):
        store = ConfigStore(temp_dir)
        store.init()

        with pytest.raises(ConfigExistsError):
            store.init(force=False)

    def test_load_not_found_raises(self, temp_dir):
        store = ConfigStore(temp_dir)

        with pytest.raises(ConfigNotFoundError):
            store.load()

    def test_load_or_default_without_config(self, temp_dir):
        store = ConfigStore(temp_dir)
        defaults = store.load_or_default()

        assert defaults.cgst_rate == 9.0
        assert not store.exists()

    def test_update_persists(self, temp_dir):
        store = ConfigStore(temp_dir)
        store.init()
        store.update(cgst_rate=6, sgst_rate="6", currency="usd")

        reloaded = ConfigStore(temp_dir).load()
        assert reloaded.cgst_rate == 6.0
        assert reloaded.sgst_rate == 6.0
        assert reloaded.currency == "USD"

    def test_update_without_config_raises(self, temp_dir):
        with pytest.raises(ConfigNotFoundError):
            ConfigStore(temp_dir).update(cgst_rate=6)

    def test_unknown_field_raises(self, temp_dir):
        store = ConfigStore(temp_dir)
        store.init()

        with pytest.raises(InvalidConfigFieldError, match="Unknown config field: vat_rate"):
            store.update(vat_rate=5)

    def test_timestamps_are_not_editable(self, temp_dir):
        store = ConfigStore(temp_dir)

        with pytest.raises(InvalidConfigFieldError):
            store.init(created_at="yesterday")

    def test_non_numeric_value_raises(self, temp_dir):
        store = ConfigStore(temp_dir)
        store.init()

        with pytest.raises(InvalidConfigFieldError, match="expected a number"):
            store.update(cod_charge="free")

    def test_unsupported_schema_version(self, temp_dir):
        (temp_dir / CONFIG_FILE).write_text(json.dumps({"schema_version": 2, "defaults": {}}))

        with pytest.raises(InvalidSchemaVersionError):
            ConfigStore(temp_dir).load()

    def test_save_leaves_no_temp_files(self, temp_dir):
        store = ConfigStore(temp_dir)
        store.init()
        store.update(shipping_charge=99)

        assert sorted(p.name for p in temp_dir.iterdir()) == [CONFIG_FILE]

    def test_update_bumps_updated_at(self, temp_dir):
        store = ConfigStore(temp_dir)
        created = store.init()
        created.updated_at = "2000-01-01T00:00:00Z"
        store.save(created)

        assert store.load().updated_at != "2000-01-01T00:00:00Z"
        assert store.load().created_at == created.created_at
