import copy

import pytest

from clusterprep.errors import EncodingError, InvalidConfigError
from clusterprep.transform import encode_categorical, extract_clustering_features


def test_onehot_replaces_source_with_indicators():
    data = [{"color": "red"}, {"color": "blue"}, {"color": "red"}]
    snapshot = copy.deepcopy(data)
    result = encode_categorical(data, ["color"], "onehot")
    assert [r["color_red"] for r in result.data] == [1, 0, 1]
    assert [r["color_blue"] for r in result.data] == [0, 1, 0]
    assert all("color" not in r for r in result.data)
    assert list(result.data[0]) == ["color_red", "color_blue"]
    assert result.encodings == {"color": ["red", "blue"]}
    assert data == snapshot


def test_onehot_missing_cells_get_all_zero_indicators():
    result = encode_categorical([{"c": "x"}, {"c": None}, {}], ["c"])
    assert result.data == [{"c_x": 1}, {"c_x": 0}, {"c_x": 0}]


def test_onehot_name_collision_is_rejected():
    data = [{"color": "red", "color_red": 5}]
    with pytest.raises(EncodingError):
        encode_categorical(data, ["color"], "onehot")

    # 1 and "1" both render as color_1
    with pytest.raises(EncodingError):
        encode_categorical([{"color": 1}, {"color": "1"}], ["color"], "onehot")


def test_label_encoding_first_seen_and_unknown_to_zero():
    data = [{"c": "b"}, {"c": "a"}, {"c": "b"}, {"c": None}]
    result = encode_categorical(data, ["c"], "label")
    assert [r["c"] for r in result.data] == [0, 1, 0, 0]
    assert result.encodings == {"c": {"b": 0, "a": 1}}


def test_ordinal_encoding_sorts_values():
    result = encode_categorical([{"c": v} for v in ["b", "a", "c"]], ["c"], "ordinal")
    assert [r["c"] for r in result.data] == [1, 0, 2]

    numeric = encode_categorical([{"n": v} for v in [10, 9, 100]], ["n"], "ordinal")
    assert [r["n"] for r in numeric.data] == [1, 0, 2]


def test_encode_rejects_unknown_method():
    with pytest.raises(InvalidConfigError):
        encode_categorical([{"c": "a"}], ["c"], "hash")


def test_extract_clustering_features():
    data = [
        {"id": "a", "x": 1, "color": "red", "flag": True},
        {"id": "b", "x": "2", "color": "blue", "flag": False},
    ]
    features = extract_clustering_features(
        data,
        numeric_columns=["x"],
        categorical_columns=["color"],
        exclude_columns=["id"],
    )
    assert features == [
        {"index": 0, "x": 1, "color_red": 1, "color_blue": 0},
        {"index": 1, "x": 2, "color_red": 0, "color_blue": 1},
    ]
    assert data[1]["x"] == "2"


def test_extract_features_without_options_keeps_numeric_fields_only():
    features = extract_clustering_features([{"a": 1.5, "b": "text", "c": None}])
    assert features == [{"index": 0, "a": 1.5}]
