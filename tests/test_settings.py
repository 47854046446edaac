"""Tests for YAML settings loading and validation."""

import pytest
import yaml

from csvpager.config.settings import DEFAULT_SETTINGS, ParserSettings, load_settings, save_settings
from csvpager.parsing.errors import ConfigError


class TestFromDict:
    def test_defaults(self):
        s = ParserSettings.from_dict(None)
        assert s.chunk_size == 1024 * 1024
        assert s.encoding == "utf-8"
        assert s.delimiter == ","
        assert s.quote_char == '"'
        assert s.trim_fields is False
        assert s.field_rules == ()

    def test_matches_dataclass_defaults(self):
        assert ParserSettings.from_dict({}) == ParserSettings()

    def test_overrides(self):
        s = ParserSettings.from_dict({"delimiter": ";", "chunk_size": "4096", "field_rules": "to_lower"})
        assert s.delimiter == ";"
        assert s.chunk_size == 4096
        assert s.field_rules == ("to_lower",)

    @pytest.mark.parametrize(
        "override",
        [
            {"chunk_size": 0},
            {"chunk_size": "big"},
            {"page_preview_rows": -1},
            {"encoding": "no-such-codec"},
            {"encoding": "utf-16"},
            {"delimiter": ",,"},
            {"quote_char": ""},
            {"delimiter": '"'},
            {"field_rules": ["shout"]},
            {"colour": "blue"},
        ],
    )
    def test_invalid_values(self, override):
        with pytest.raises(ConfigError):
            ParserSettings.from_dict(override)

    def test_config_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            ParserSettings.from_dict({"chunk_size": -5})

    def test_trim_fields_implies_clean_field(self):
        s = ParserSettings.from_dict({"trim_fields": True, "field_rules": ["to_lower"]})
        assert s.effective_rules() == ["clean_field", "to_lower"]
        assert ParserSettings().effective_rules() == []


class TestConstructor:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"chunk_size": 0},
            {"page_preview_rows": 0},
            {"encoding": "utf-16"},
            {"encoding": "no-such-codec"},
            {"delimiter": ";;"},
            {"quote_char": ","},
            {"field_rules": ["shout"]},
        ],
    )
    def test_direct_construction_is_validated(self, kwargs):
        with pytest.raises(ConfigError):
            ParserSettings(**kwargs)

    def test_rule_list_is_stored_as_tuple(self):
        s = ParserSettings(field_rules=["to_lower"])
        assert s.field_rules == ("to_lower",)

    def test_settings_are_hashable(self):
        a = ParserSettings(field_rules=("to_lower",))
        b = ParserSettings.from_dict({"field_rules": ["to_lower"]})
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_to_dict_gives_plain_lists(self):
        assert ParserSettings(field_rules=("to_lower",)).to_dict()["field_rules"] == ["to_lower"]


class TestFiles:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "missing.yaml") == ParserSettings()

    def test_partial_file_is_merged_over_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("encoding: latin1\ntrim_fields: true\n", encoding="utf-8")
        s = load_settings(path)
        assert s.encoding == "latin1"
        assert s.trim_fields is True
        assert s.chunk_size == DEFAULT_SETTINGS["chunk_size"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path) == ParserSettings()

    def test_non_mapping_is_rejected(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_broken_yaml_is_rejected(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("chunk_size: [1, 2\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_save_writes_every_key(self, tmp_path):
        path = tmp_path / "out" / "settings.yaml"
        save_settings(ParserSettings(delimiter="|", trim_fields=True), path)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert set(data) == set(DEFAULT_SETTINGS)
        assert data["delimiter"] == "|"
        assert load_settings(path).trim_fields is True

    def test_shipped_settings_file_is_valid(self):
        assert load_settings() == ParserSettings()
