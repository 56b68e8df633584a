"""Tests for rule-set YAML parsing."""

from datetime import date
from decimal import Decimal

import pytest
import yaml

from payroll_config.loader import (
    compute_checksum,
    load_rule_set,
    parse_date,
    parse_decimal,
    parse_rule_set,
    parse_table,
)


class TestParsePrimitives:
    def test_parse_date_from_string(self):
        assert parse_date("2024-01-01") == date(2024, 1, 1)

    def test_parse_date_passthrough(self):
        assert parse_date(date(2024, 1, 1)) == date(2024, 1, 1)

    def test_parse_date_rejects_number(self):
        with pytest.raises(ValueError):
            parse_date(20240101)

    @pytest.mark.parametrize(
        "value,expected",
        [("1412.00", Decimal("1412.00")), (220, Decimal("220")), (0.075, Decimal("0.075"))],
    )
    def test_parse_decimal(self, value, expected):
        assert parse_decimal(value, "field") == expected

    @pytest.mark.parametrize("value", [None, True, "abc", "NaN", "Infinity"])
    def test_parse_decimal_rejects(self, value):
        with pytest.raises(ValueError, match="rate"):
            parse_decimal(value, "rate")


class TestParseTable:
    def test_unbounded_last_row(self):
        table = parse_table({
            "name": "T",
            "brackets": [
                {"lower_bound": "0", "upper_bound": "100", "rate": "0"},
                {"lower_bound": "100", "upper_bound": None, "rate": "0.1", "cumulative_deduction": "10"},
            ],
        })

        assert table.brackets[0].cumulative_deduction == Decimal("0")
        assert table.brackets[1].upper_bound is None
        assert table.ceiling is None

    def test_missing_rate_raises_key_error(self):
        with pytest.raises(KeyError):
            parse_table({"name": "T", "brackets": [{"lower_bound": "0"}]})


class TestParseRuleSet:
    def test_shipped_2024_set(self, rules_2024_data):
        rule_set = parse_rule_set(rules_2024_data)

        assert rule_set.rule_set_id == "br-clt-2024"
        assert rule_set.scope.jurisdiction == "BR"
        assert rule_set.scope.effective_from == date(2024, 1, 1)
        assert rule_set.scope.effective_to == date(2024, 12, 31)
        assert rule_set.minimum_wage == Decimal("1412.00")
        assert rule_set.inss.ceiling == Decimal("7786.02")
        assert len(rule_set.inss.brackets) == 4
        assert len(rule_set.irrf.table.brackets) == 5
        assert rule_set.irrf.per_dependent_deduction == Decimal("189.59")
        assert rule_set.irrf.mode == "legal"
        assert rule_set.fgts_fine_rate == Decimal("0.40")
        assert rule_set.notice.max_days == 90
        assert rule_set.unemployment.max_guides == 5

    def test_premiums(self, rules_2024_data):
        premiums = parse_rule_set(rules_2024_data).premiums

        assert dict(premiums.insalubrity_rates) == {
            "high": Decimal("0.40"),
            "low": Decimal("0.10"),
            "medium": Decimal("0.20"),
        }
        assert premiums.night_reduction_factor == Decimal("60") / Decimal("52.5")

    def test_optional_sections_default(self, rules_2024_data):
        del rules_2024_data["notice"]
        del rules_2024_data["unemployment"]
        rule_set = parse_rule_set(rules_2024_data)

        assert rule_set.notice.base_days == 30
        assert rule_set.unemployment.months_per_guide == 6

    def test_open_ended_scope(self, rules_2024_data):
        rules_2024_data["scope"]["effective_to"] = None

        assert parse_rule_set(rules_2024_data).scope.effective_to is None

    def test_missing_minimum_wage(self, rules_2024_data):
        del rules_2024_data["minimum_wage"]

        with pytest.raises(KeyError):
            parse_rule_set(rules_2024_data)

    def test_bad_number_names_field(self, rules_2024_data):
        rules_2024_data["charges"]["rat_rate"] = "three percent"

        with pytest.raises(ValueError, match="charges.rat_rate"):
            parse_rule_set(rules_2024_data)


class TestChecksum:
    def test_stable(self, rules_2024_data):
        assert compute_checksum(rules_2024_data) == compute_checksum(dict(rules_2024_data))
        assert len(compute_checksum(rules_2024_data)) == 64

    def test_changes_with_content(self, rules_2024_data):
        before = compute_checksum(rules_2024_data)
        rules_2024_data["minimum_wage"] = "1412.01"

        assert compute_checksum(rules_2024_data) != before

    def test_carried_on_rule_set(self, rules_2024_data):
        assert parse_rule_set(rules_2024_data).checksum == compute_checksum(rules_2024_data)


class TestLoadRuleSet:
    def test_round_trip_through_file(self, rules_2024_data, write_rule_set):
        sets_dir = write_rule_set("copy", rules_2024_data)

        loaded = load_rule_set(sets_dir / "copy")

        assert loaded == parse_rule_set(rules_2024_data)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_rule_set(tmp_path)

    def test_malformed_yaml(self, tmp_path):
        (tmp_path / "rules.yaml").write_text("rule_set_id: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            load_rule_set(tmp_path)
