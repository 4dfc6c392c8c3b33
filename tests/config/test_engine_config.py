"""Tests for loading and validating the payroll engine configuration."""

from __future__ import annotations

from decimal import Decimal

import pytest
import yaml

from payroll_config import CONFIG_ENV_VAR, PayrollEngineConfig, get_active_config
from payroll_config.loader import compute_checksum, parse_engine_config
from payroll_services import PayrollCycleEngine


def _write(tmp_path, data, name="payroll.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


@pytest.fixture(autouse=True)
def _no_env_config(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestDefaults:
    def test_business_defaults(self):
        config = get_active_config()

        assert config.bonus_month_offset == 2
        assert config.payment_month_offset == 1
        assert config.hours_per_weekday == Decimal("8")
        assert config.money_quantum == Decimal("0.01")
        assert config.validate() == []

    def test_trace_logged(self, captured_logs):
        get_active_config()

        trace = next(r for r in captured_logs() if r["message"] == "PAYROLL_CONFIG_TRACE")
        assert trace["trace_type"] == "PAYROLL_CONFIG_TRACE"
        assert trace["config_source"] == "defaults"


class TestYamlFile:
    def test_explicit_path_under_section(self, tmp_path):
        path = _write(
            tmp_path,
            {"payroll_engine": {"bonus_month_offset": 3, "hours_per_weekday": 7.5}},
        )

        config = get_active_config(path)

        assert config.bonus_month_offset == 3
        assert config.hours_per_weekday == Decimal("7.5")
        assert config.payment_month_offset == 1
        assert config.checksum == compute_checksum(
            {"bonus_month_offset": 3, "hours_per_weekday": 7.5}
        )

    def test_environment_variable(self, tmp_path, monkeypatch, captured_logs):
        path = _write(tmp_path, {"payment_month_offset": 2})
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        config = get_active_config()

        assert config.payment_month_offset == 2
        trace = next(r for r in captured_logs() if r["message"] == "PAYROLL_CONFIG_TRACE")
        assert trace["config_source"] == str(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("payroll_engine: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            get_active_config(path)


class TestValidation:
    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown configuration keys: bonus_offset"):
            parse_engine_config({"bonus_offset": 2})

    @pytest.mark.parametrize("value", ["2", 2.0, True])
    def test_offset_must_be_integer(self, value):
        with pytest.raises(ValueError):
            parse_engine_config({"bonus_month_offset": value})

    def test_decimal_must_be_numeric(self):
        with pytest.raises(ValueError):
            parse_engine_config({"money_quantum": "cent"})

    def test_out_of_range_rejected(self, tmp_path):
        path = _write(tmp_path, {"bonus_month_offset": 12, "hours_per_weekday": 0})

        with pytest.raises(ValueError) as exc_info:
            get_active_config(path)

        message = str(exc_info.value)
        assert "bonus_month_offset" in message
        assert "hours_per_weekday" in message

    def test_year_range(self):
        config = PayrollEngineConfig(work_hours_year_min=2030, work_hours_year_max=2020)
        assert len(config.validate()) == 1

    def test_checksum_is_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})


class TestConfigDrivesEngine:
    def test_bonus_offset_changes_inference(self, session, clock, add_consultant):
        march = add_consultant("March", bonus_month=3)
        add_consultant("December", bonus_month=12)
        payroll = PayrollCycleEngine(
            session, clock=clock, config=PayrollEngineConfig(bonus_month_offset=5)
        )
        cycle = payroll.create_cycle("October 2025")

        workflow = payroll.get_or_infer_bonus_recipient(cycle.id)

        assert workflow.bonus_recipient_consultant_id == march.id

    def test_hours_per_weekday_changes_fallback(self, session, clock, team):
        payroll = PayrollCycleEngine(
            session, clock=clock, config=PayrollEngineConfig(hours_per_weekday=Decimal("6"))
        )
        cycle = payroll.create_cycle("October 2025")

        result = payroll.calculate_payment(cycle.id)

        # November 2025 has 20 weekdays
        assert result.payment_work_hours == Decimal("120")
