from datetime import datetime

from clusterprep.cleaning_utils import (
    coerce_value,
    collect_fields,
    format_value,
    is_missing,
    is_number,
    is_numeric_like,
    value_key,
)


def test_coerce_null_and_bool_tokens():
    assert coerce_value("") is None
    assert coerce_value("   ") is None
    assert coerce_value("TRUE") is True
    assert coerce_value(" false ") is False


def test_coerce_numbers_keep_integer_and_fraction_distinction():
    assert coerce_value("42") == 42
    assert isinstance(coerce_value("42"), int)
    assert coerce_value("-3.5") == -3.5
    assert isinstance(coerce_value("2.0"), float)
    assert coerce_value("+7") == 7


def test_coerce_number_checked_before_date():
    # A bare year is numeric, never a date
    assert coerce_value("2024") == 2024
    assert coerce_value("2024-01-15") == datetime(2024, 1, 15)
    assert coerce_value("2024-01-15T10:30:00") == datetime(2024, 1, 15, 10, 30)


def test_coerce_invalid_date_falls_back_to_text():
    assert coerce_value("2024-13-45") == "2024-13-45"


def test_coerce_text_trimming_and_passthrough():
    assert coerce_value("  hello ") == "hello"
    assert coerce_value("  hello ", trim=False) == "  hello "
    assert coerce_value(5) == 5
    assert coerce_value(None) is None


def test_numeric_predicates_exclude_bools_and_nan():
    assert is_number(3) and is_number(2.5)
    assert not is_number(True)
    assert not is_number(float("nan"))
    assert is_numeric_like("12.5")
    assert not is_numeric_like("12a")
    assert is_missing(None) and is_missing("") and is_missing(float("nan"))
    assert not is_missing(0)


def test_value_key_and_format_value():
    assert value_key(True) != value_key(1)
    assert value_key(1) == value_key(1.0)
    assert format_value(True) == "true"
    assert format_value(3.0) == "3"
    assert format_value(1e-7) == "0.0000001"
    assert format_value(-2.5e-5) == "-0.000025"
    assert format_value(datetime(2024, 1, 15)) == "2024-01-15"
    assert format_value(None) == ""


def test_collect_fields_first_seen_union():
    assert collect_fields([{"a": 1, "b": 2}, {"c": 3, "a": 4}]) == ["a", "b", "c"]
