"""
Unit tests for config normalization.
"""

import dataclasses

import pytest

from influx_client import ConnectionDescriptor, ContractViolation, new_config


def test_empty_opts_give_documented_defaults():
    cfg = new_config({})
    assert cfg == ConnectionDescriptor(
        scheme="http",
        host="localhost",
        port=8086,
        sub_path="",
        username="root",
        password="root",
        database=None,
    )


def test_overrides_replace_defaults_and_absent_keys_keep_them():
    cfg = new_config({"host": "db1", "port": 9999, "database": "metrics", "username": "u"})
    assert cfg.host == "db1"
    assert cfg.port == 9999
    assert cfg.database == "metrics"
    assert cfg.username == "u"
    assert cfg.password == "root"
    assert cfg.scheme == "http"
    assert cfg.sub_path == ""


def test_text_like_values_are_converted_to_str():
    cfg = new_config(
        {
            "host": b"db1",
            "username": bytearray(b"admin"),
            "password": ["se", b"cr", ["et"]],
            "database": "métriques".encode("utf-8"),
        }
    )
    assert cfg.host == "db1"
    assert cfg.username == "admin"
    assert cfg.password == "secret"
    assert cfg.database == "métriques"


def test_explicit_none_scheme_and_sub_path_fall_back():
    cfg = new_config({"scheme": None, "sub_path": None})
    assert cfg.scheme == "http"
    assert cfg.sub_path == ""


def test_none_database_means_no_database():
    assert new_config({"database": None}).database is None


@pytest.mark.parametrize("port", [0, 65536, -1, 70000, "8086", 8086.0, True, None])
def test_invalid_port_is_rejected(port):
    with pytest.raises(ContractViolation):
        new_config({"port": port})


@pytest.mark.parametrize("port", [1, 80, 8086, 65535])
def test_valid_ports_are_kept(port):
    assert new_config({"port": port}).port == port


def test_unknown_key_is_rejected():
    with pytest.raises(ContractViolation, match="unknown config keys"):
        new_config({"hostname": "db1"})


def test_non_text_host_is_rejected():
    with pytest.raises(ContractViolation):
        new_config({"host": 1234})


def test_contract_violation_is_a_value_error():
    with pytest.raises(ValueError):
        new_config({"port": 0})


def test_descriptor_is_immutable():
    cfg = new_config({})
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.host = "other"  # type: ignore
