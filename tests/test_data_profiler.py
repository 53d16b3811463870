import pytest

from clusterprep.data_profiler import validate_dataset


def _levels(report):
    return [(r.level, r.message) for r in report.recommendations]


def test_min_rows_failure_still_computes_statistics():
    data = [{"x": 1, "c": "a"}, {"x": 2, "c": "b"}, {"x": 3, "c": "a"}]
    report = validate_dataset(data, min_rows=10)
    assert report.is_valid is False
    assert any("minimum 10" in e for e in report.errors)
    assert set(report.statistics) == {"x", "c"}
    assert report.statistics["x"].data_type == "numeric"
    assert report.statistics["x"].mean == pytest.approx(2.0)
    assert report.row_count == 3


def test_numeric_classification_threshold_includes_numeric_text():
    data = [{"v": 1}, {"v": "2"}, {"v": 3}, {"v": 4}, {"v": "x"}]
    profile = validate_dataset(data).statistics["v"]
    # 4 of 5 values are numeric: exactly 80%
    assert profile.data_type == "numeric"
    assert profile.min == 1
    assert profile.max == 4
    assert profile.mean == pytest.approx(2.5)


def test_categorical_profile_counts_non_missing_values():
    data = [{"c": "a"}, {"c": "b"}, {"c": "a"}, {"c": None}]
    profile = validate_dataset(data).statistics["c"]
    assert profile.data_type == "categorical"
    assert profile.unique_count == 2
    assert profile.total_count == 3
    assert profile.missing_count == 1
    assert profile.missing_percentage == pytest.approx(25.0)


def test_missing_value_recommendations():
    data = [
        {"mostly_empty": None, "some_empty": 1},
        {"mostly_empty": None, "some_empty": None},
        {"mostly_empty": 1, "some_empty": 2},
        {"mostly_empty": None, "some_empty": 3},
    ]
    levels = _levels(validate_dataset(data))
    assert ("warning", "Column 'mostly_empty' has 75.0% missing values") in levels
    assert ("info", "Column 'some_empty' has 25.0% missing values") in levels


def test_identifier_column_and_small_dataset_recommendations():
    data = [{"id": "a"}, {"id": "b"}, {"id": "c"}]
    report = validate_dataset(data)
    messages = [r.message for r in report.recommendations]
    assert "Column 'id' has unique values for each row" in messages
    assert "Very small dataset for clustering" in messages
    assert report.is_valid is True


def test_large_dataset_info_and_max_rows_warning_keep_report_valid():
    data = [{"x": i % 7} for i in range(10001)]
    report = validate_dataset(data, max_rows=5000)
    assert report.is_valid is True
    assert report.warnings and "Large dataset" in report.warnings[0]
    assert ("info", "Large dataset detected") in _levels(report)


def test_required_columns_and_numeric_column_warnings():
    data = [{"x": 1, "y": "a"}, {"x": "n/a", "y": "b"}]
    report = validate_dataset(
        data, required_columns=["x", "z"], numeric_columns=["x"]
    )
    assert report.is_valid is False
    assert "Missing required column: z" in report.errors
    assert "Column 'x' contains 1 non-numeric values" in report.warnings


def test_non_sequence_input_is_structural_error():
    report = validate_dataset({"x": 1})
    assert report.is_valid is False
    assert report.errors == ["Data must be a sequence of records"]
    assert report.statistics == {}
