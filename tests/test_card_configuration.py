import os
import sys
from pathlib import Path

import pytest

# Ensure the project root is on the import path
sys.path.insert(0, os.path.abspath(os.path.join(Path(__file__).resolve().parent, "..")))

from billing_cycle import (
    CardConfiguration,
    get_best_purchase_day,
    has_complete_billing_config,
    has_extended_billing_fields,
    resolve_due_day,
    resolve_legacy_defaults,
    validate_configuration,
)


def test_valid_configuration():
    result = validate_configuration(CardConfiguration(15, due_day=25, preferred_purchase_day=16))
    assert result.valid
    assert result.errors == []


def test_due_day_equal_to_closing_day_is_rejected():
    result = validate_configuration({"closing_day": 15, "due_day": 15})
    assert not result.valid
    assert result.errors == ["due day must differ from closing day"]


@pytest.mark.parametrize("closing_day", [0, 32, None, True, "15"])
def test_closing_day_out_of_range(closing_day):
    result = validate_configuration(CardConfiguration(closing_day))
    assert not result.valid
    assert "closing day must be between 1 and 31" in result.errors


def test_optional_fields_are_range_checked():
    result = validate_configuration(
        CardConfiguration(10, due_day=40, preferred_purchase_day=0)
    )
    assert result.errors == [
        "due day must be between 1 and 31",
        "preferred purchase day must be between 1 and 31",
    ]


def test_missing_configuration():
    result = validate_configuration(None)
    assert not result.valid
    assert result.errors == ["card configuration is missing"]


def test_validation_leaves_record_untouched():
    record = {"closing_day": 15, "due_day": 15}
    first = validate_configuration(record)
    second = validate_configuration(record)
    assert first == second
    assert record == {"closing_day": 15, "due_day": 15}


def test_from_record_reads_legacy_keys():
    config = CardConfiguration.from_record(
        {"dia_fechamento": 10, "dia_vencimento": 20, "melhor_dia_compra": None}
    )
    assert config == CardConfiguration(10, due_day=20, preferred_purchase_day=None)
    assert CardConfiguration.from_record({"closing_day": 5}) == CardConfiguration(5)


def test_legacy_defaults_wrap_past_month_end():
    assert resolve_legacy_defaults({"closing_day": 25}) == {
        "due_day": 4,
        "preferred_purchase_day": 26,
    }
    assert resolve_legacy_defaults(CardConfiguration(10, due_day=20, preferred_purchase_day=3)) == {
        "due_day": 20,
        "preferred_purchase_day": 3,
    }


def test_resolve_due_day():
    assert resolve_due_day(CardConfiguration(21)) == 31
    assert resolve_due_day(CardConfiguration(22)) == 1
    assert resolve_due_day(CardConfiguration(22, due_day=5)) == 5


def test_best_purchase_day():
    assert get_best_purchase_day(CardConfiguration(15)) == 16
    assert get_best_purchase_day(CardConfiguration(31)) == 1
    assert get_best_purchase_day(CardConfiguration(15, preferred_purchase_day=5)) == 5
    assert get_best_purchase_day(None) == 16


def test_billing_field_predicates():
    assert not has_extended_billing_fields(CardConfiguration(15))
    assert has_extended_billing_fields(CardConfiguration(15, preferred_purchase_day=3))
    assert has_complete_billing_config(CardConfiguration(15, due_day=25))
    assert not has_complete_billing_config(CardConfiguration(15))
    assert not has_complete_billing_config(None)
