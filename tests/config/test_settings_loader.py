"""
Tests for reconciliation settings: YAML loading, parsing, validation,
bridges and the CHARTER_CONFIG_TRACE audit record.
"""

from decimal import Decimal

import pytest
import yaml

from charter_config import DEFAULT_SETTINGS_PATH, get_reconciliation_settings
from charter_config.bridges import (
    build_partial_payment_policy,
    build_presentation,
    resolve_percent_change_preset,
)
from charter_config.loader import compute_checksum, load_yaml_file, parse_settings
from charter_config.schema import ReconciliationSettings
from charter_kernel.exceptions import (
    ConfigurationError,
    InvalidCurrencyError,
    InvalidLocaleError,
    InvalidPartialPaymentPolicyError,
    InvalidRoundingPresetError,
)
from charter_engines.rounding import PERCENT_CHANGE_ONE_PLACE, PERCENT_CHANGE_TWO_PLACES


def _write(tmp_path, text):
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaultSettings:
    def test_packaged_file_exists(self):
        assert DEFAULT_SETTINGS_PATH.is_file()

    def test_defaults(self):
        settings = get_reconciliation_settings()
        assert settings.settings_id == "charter-default"
        assert settings.presentation.locale == "en-US"
        assert settings.presentation.currency == "EUR"
        assert settings.partial_payment.fraction == "0.5"
        assert settings.rounding.percent_change == "percent_change_one_place"
        assert len(settings.checksum) == 64

    def test_config_trace_emitted(self, captured_logs):
        settings = get_reconciliation_settings()
        traces = [r for r in captured_logs() if r["message"] == "CHARTER_CONFIG_TRACE"]
        assert traces[0]["checksum"] == settings.checksum
        assert traces[0]["currency"] == "EUR"


class TestCustomSettings:
    def test_full_document(self, tmp_path):
        path = _write(tmp_path, """
settings_id: marina-ro
version: 3
presentation:
  locale: ro-RO
  currency: ron
partial_payment:
  fraction: 0.25
rounding:
  percent_change: percent_change_two_places
""")
        settings = get_reconciliation_settings(path)
        assert settings.settings_id == "marina-ro"
        assert settings.version == 3
        assert settings.presentation.currency == "RON"
        assert settings.partial_payment.fraction == "0.25"
        assert resolve_percent_change_preset(settings) is PERCENT_CHANGE_TWO_PLACES
        assert build_partial_payment_policy(settings).fraction == Decimal("0.25")

    def test_missing_sections_take_defaults(self, tmp_path):
        settings = get_reconciliation_settings(_write(tmp_path, "settings_id: minimal\n"))
        assert settings.presentation.locale == "en-US"
        assert resolve_percent_change_preset(settings) is PERCENT_CHANGE_ONE_PLACE

    def test_empty_file(self, tmp_path):
        settings = get_reconciliation_settings(_write(tmp_path, ""))
        assert settings.settings_id == "charter-default"

    def test_path_as_string(self, tmp_path):
        path = _write(tmp_path, "version: 2\n")
        assert get_reconciliation_settings(str(path)).version == 2

    def test_checksum_tracks_content(self, tmp_path):
        first = get_reconciliation_settings(_write(tmp_path, "version: 1\n"))
        second = get_reconciliation_settings(_write(tmp_path, "version: 2\n"))
        assert first.checksum != second.checksum


class TestInvalidSettings:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_reconciliation_settings(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path):
        with pytest.raises(yaml.YAMLError):
            get_reconciliation_settings(_write(tmp_path, "presentation: [unclosed\n"))

    def test_top_level_not_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            get_reconciliation_settings(_write(tmp_path, "- a\n- b\n"))
        assert exc_info.value.code == "INVALID_CONFIGURATION"

    def test_section_not_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError):
            get_reconciliation_settings(_write(tmp_path, "presentation: en-US\n"))

    def test_version_not_integer(self, tmp_path):
        with pytest.raises(ConfigurationError):
            get_reconciliation_settings(_write(tmp_path, "version: one\n"))

    def test_unknown_currency(self, tmp_path):
        with pytest.raises(InvalidCurrencyError):
            get_reconciliation_settings(_write(tmp_path, "presentation:\n  currency: XYZW\n"))

    def test_unknown_locale(self, tmp_path):
        with pytest.raises(InvalidLocaleError):
            get_reconciliation_settings(_write(tmp_path, "presentation:\n  locale: zz-ZZ\n"))

    def test_fraction_out_of_range(self, tmp_path):
        with pytest.raises(InvalidPartialPaymentPolicyError):
            get_reconciliation_settings(_write(tmp_path, "partial_payment:\n  fraction: 1.5\n"))

    def test_fraction_not_a_number(self, tmp_path):
        with pytest.raises(InvalidPartialPaymentPolicyError):
            get_reconciliation_settings(_write(tmp_path, "partial_payment:\n  fraction: half\n"))

    def test_unknown_preset(self, tmp_path):
        with pytest.raises(InvalidRoundingPresetError):
            get_reconciliation_settings(_write(tmp_path, "rounding:\n  percent_change: three\n"))

    def test_all_are_configuration_errors(self):
        for exc_type in (
            InvalidCurrencyError,
            InvalidLocaleError,
            InvalidPartialPaymentPolicyError,
            InvalidRoundingPresetError,
        ):
            assert issubclass(exc_type, ConfigurationError)


class TestLoaderHelpers:
    def test_load_yaml_file(self, tmp_path):
        assert load_yaml_file(_write(tmp_path, "a: 1\n")) == {"a": 1}

    def test_parse_settings_without_file(self):
        settings = parse_settings({"presentation": {"currency": "USD"}})
        assert settings.presentation.currency == "USD"
        assert settings.checksum == compute_checksum({"presentation": {"currency": "USD"}})

    def test_checksum_key_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_build_presentation(self):
        presentation = build_presentation(ReconciliationSettings())
        assert (presentation.locale, presentation.currency) == ("en-US", "EUR")
