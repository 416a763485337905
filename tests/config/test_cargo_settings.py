"""Tests for cargo_config: YAML loading, parsing and the env override."""

from decimal import Decimal

import pytest
import yaml

from cargo_config import DATABASE_URL_ENV, CargoSettings, get_active_config
from cargo_config.loader import load_yaml_file, parse_settings


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch):
    monkeypatch.delenv(DATABASE_URL_ENV, raising=False)


def _write(tmp_path, text):
    path = tmp_path / "cargo.yaml"
    path.write_text(text)
    return path


class TestPackagedDefaults:

    def test_defaults_match_schema(self):
        assert get_active_config() == CargoSettings()

    def test_weight_factor_is_decimal(self):
        assert get_active_config().waste_weight_factor == Decimal("0.1")

    def test_load_is_logged(self, captured_logs):
        get_active_config()
        record = next(r for r in captured_logs() if r["message"] == "cargo_config_loaded")
        assert record["database_override"] is False


class TestFileLoading:

    def test_custom_file(self, tmp_path):
        path = _write(
            tmp_path,
            "database:\n  url: sqlite:///cargo.db\n"
            "lifecycle:\n  system_actor: hold-bot\n"
            "waste:\n  weight_factor: 0.25\n"
            "logging:\n  level: debug\n",
        )

        settings = get_active_config(path)

        assert settings.database_url == "sqlite:///cargo.db"
        assert settings.system_actor == "hold-bot"
        assert settings.waste_weight_factor == Decimal("0.25")
        assert settings.log_level == "DEBUG"

    def test_missing_sections_use_defaults(self, tmp_path):
        settings = get_active_config(_write(tmp_path, "lifecycle:\n  system_actor: bot\n"))
        assert settings.database_url == "sqlite://"
        assert settings.system_actor == "bot"

    def test_empty_file(self, tmp_path):
        assert get_active_config(_write(tmp_path, "")) == CargoSettings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_top_level_list_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            load_yaml_file(_write(tmp_path, "- a\n- b\n"))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(_write(tmp_path, "database: [unclosed\n"))


class TestEnvOverride:

    def test_database_url_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv(DATABASE_URL_ENV, "postgresql://cargo@localhost/cargo")
        settings = get_active_config(_write(tmp_path, "database:\n  echo: true\n"))
        assert settings.database_url == "postgresql://cargo@localhost/cargo"
        assert settings.echo_sql is True

    def test_env_override_without_database_section(self, monkeypatch, tmp_path):
        monkeypatch.setenv(DATABASE_URL_ENV, "sqlite:///other.db")
        assert get_active_config(_write(tmp_path, "")).database_url == "sqlite:///other.db"


class TestParseSettings:

    @pytest.mark.parametrize("factor", ["0", "-0.1", "heavy", "NaN"])
    def test_bad_weight_factor(self, factor):
        with pytest.raises(ValueError):
            parse_settings({"waste": {"weight_factor": factor}})

    def test_bad_log_level(self):
        with pytest.raises(ValueError):
            parse_settings({"logging": {"level": "LOUD"}})

    def test_section_must_be_mapping(self):
        with pytest.raises(ValueError):
            parse_settings({"database": "sqlite://"})
