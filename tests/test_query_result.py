from __future__ import annotations

import pytest

from vm_storage_adapter.adapters.api.query_result import SampleKind, SampleValue, parse_query_response
from vm_storage_adapter.adapters.errors import DecodeError


def test_parse_query_response_decodes_vector():
    response = parse_query_response(
        {
            "status": "success",
            "data": {
                "resultType": "vector",
                "result": [{"metric": {"__name__": "up", "job": "api"}, "value": [1760689800.5, "1"]}],
            },
        }
    )

    assert response.status == "success"
    assert response.result_type == "vector"
    entry = response.result[0]
    assert entry.metric == {"__name__": "up", "job": "api"}
    assert entry.pair_length == 2
    assert entry.timestamp == 1760689800.5
    assert entry.sample == SampleValue(kind=SampleKind.NUMERIC, text="1")


def test_parse_query_response_tolerates_missing_members():
    response = parse_query_response({"status": "success"})

    assert response.result == ()
    assert response.result_type == ""


def test_sample_value_absent():
    sample = SampleValue.decode(None)

    assert sample.is_absent
    assert sample.text is None


@pytest.mark.parametrize(
    "payload",
    [
        [],
        "success",
        {"data": []},
        {"data": {"result": {}}},
        {"data": {"result": ["1"]}},
        {"data": {"result": [{"value": "1"}]}},
        {"data": {"result": [{"metric": [], "value": [1, "1"]}]}},
        {"status": 1, "data": {"result": []}},
        {"data": {"result": [{"value": [1, True]}]}},
    ],
)
def test_parse_query_response_rejects_malformed_envelopes(payload):
    with pytest.raises(DecodeError):
        parse_query_response(payload)
