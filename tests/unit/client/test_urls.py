"""
Unit tests for URL and query-parameter assembly.
"""

import itertools

import pytest

from influx_client import QueryOptions, TimeUnit, WriteOptions, new_config
from influx_client.urls import encode_url, query_url, write_url

CODES = {
    TimeUnit.HOUR: "h",
    TimeUnit.MINUTE: "m",
    TimeUnit.SECOND: "s",
    TimeUnit.MILLISECOND: "ms",
    TimeUnit.MICROSECOND: "u",
    TimeUnit.NANOSECOND: "ns",
}


def test_precision_code_table():
    assert {u: u.code for u in TimeUnit} == CODES


def test_write_url_scenario(descriptor):
    url, params = write_url(descriptor, WriteOptions(precision="second"))
    assert params == {"db": "metrics", "precision": "s"}
    assert url == "http://db1:8086/write?db=metrics&precision=s"


@pytest.mark.parametrize(
    "database,precision,rp",
    list(itertools.product([None, "metrics"], [None, *TimeUnit], [None, "autogen"])),
)
def test_write_params_present_iff_supplied(database, precision, rp):
    cfg = new_config({"database": database})
    _, params = write_url(cfg, WriteOptions(precision=precision, retention_policy=rp))

    assert ("db" in params) == (database is not None)
    assert ("rp" in params) == (rp is not None)
    assert ("precision" in params) == (precision is not None)
    assert "epoch" not in params
    if precision is not None:
        assert params["precision"] == CODES[precision]
    if rp is not None:
        assert params["rp"] == rp


def test_query_url_defaults_to_nanosecond_epoch(descriptor):
    url, params = query_url(descriptor, "SHOW DATABASES", QueryOptions())
    assert params == {"db": "metrics", "epoch": "ns", "q": "SHOW DATABASES"}
    assert url == "http://db1:8086/query?db=metrics&epoch=ns&q=SHOW%20DATABASES"


def test_query_precision_overwrites_epoch_and_rp_is_added(descriptor):
    opts = QueryOptions(precision="millisecond", retention_policy="rp1")
    _, params = query_url(descriptor, "SELECT * FROM cpu", opts)
    assert params["epoch"] == "ms"
    assert params["rp"] == "rp1"
    assert "precision" not in params


def test_query_without_database_has_no_db():
    _, params = query_url(new_config({}), "SHOW DATABASES", QueryOptions())
    assert "db" not in params


def test_sub_path_prefixes_endpoint():
    cfg = new_config({"scheme": "https", "host": "proxy", "port": 443, "sub_path": "/influx"})
    url, _ = write_url(cfg, WriteOptions())
    assert url == "https://proxy:443/influx/write"
    url, _ = query_url(cfg, "SHOW DATABASES", QueryOptions())
    assert url.startswith("https://proxy:443/influx/query?")


def test_query_text_is_percent_encoded(descriptor):
    url, _ = query_url(descriptor, "SELECT * FROM cpu WHERE host='a&b'", QueryOptions())
    assert "q=SELECT%20%2A%20FROM%20cpu%20WHERE%20host%3D%27a%26b%27" in url


def test_ipv6_host_is_bracketed():
    assert encode_url("http", "::1", 8086, "/write") == "http://[::1]:8086/write"
