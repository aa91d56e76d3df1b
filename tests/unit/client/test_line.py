"""
Unit tests for the line-protocol encoder.
"""

import pytest
from pydantic import ValidationError

from influx_client import ContractViolation, Point, encode
from influx_client.line import encode_point


def test_full_point():
    p = Point(
        measurement="cpu",
        tags={"region": "eu", "host": "a"},
        fields={"load": 0.5, "count": 3, "up": True, "msg": 'say "hi"'},
        time=1700000000,
    )
    assert encode_point(p) == (
        'cpu,host=a,region=eu load=0.5,count=3i,up=true,msg="say \\"hi\\"" 1700000000\n'
    )


def test_point_without_tags_or_time():
    assert encode_point(Point(measurement="mem", fields={"free": 1.25})) == "mem free=1.25\n"


def test_special_characters_are_escaped():
    p = Point(
        measurement="my cpu,x",
        tags={"a b": "x=y", "c,d": "e f"},
        fields={"f=1": False, "path": "C:\\tmp"},
    )
    assert encode_point(p) == (
        'my\\ cpu\\,x,a\\ b=x\\=y,c\\,d=e\\ f f\\=1=false,path="C:\\\\tmp"\n'
    )


def test_empty_tag_values_are_skipped():
    p = Point(measurement="cpu", tags={"host": "", "dc": "x"}, fields={"v": 1})
    assert encode_point(p) == "cpu,dc=x v=1i\n"


def test_mappings_are_accepted():
    assert encode([{"measurement": "cpu", "fields": {"v": 2}, "time": 5}]) == b"cpu v=2i 5\n"


def test_encode_concatenates_lines_in_order():
    body = encode(
        [
            Point(measurement="a", fields={"v": 1}),
            Point(measurement="b", fields={"v": 2}),
        ]
    )
    assert body == b"a v=1i\nb v=2i\n"


def test_encode_empty_sequence():
    assert encode([]) == b""


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_floats_are_rejected(value):
    with pytest.raises(ContractViolation):
        encode_point(Point(measurement="cpu", fields={"v": value}))


def test_point_requires_fields():
    with pytest.raises(ValidationError):
        Point(measurement="cpu", fields={})


def test_point_requires_measurement():
    with pytest.raises(ValidationError):
        Point(measurement="", fields={"v": 1})


def test_field_types_are_preserved():
    p = Point(measurement="m", fields={"b": True, "i": 1, "f": 1.0, "s": "1"})
    assert [type(v) for v in p.fields.values()] == [bool, int, float, str]


def test_invalid_point_mapping_is_a_contract_violation():
    with pytest.raises(ContractViolation):
        encode([{"measurement": "cpu", "fields": {}}])
    with pytest.raises(ContractViolation):
        encode([{"measurement": "cpu", "fields": {"v": 1}, "time": "later"}])
