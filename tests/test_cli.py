"""Tests for the command line entry point."""

import os

import pytest

from pricetick.cli import build_parser, main
from pricetick.config import ENV_PREFIX

from helpers import free_port


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def test_no_mode_means_both():
    args = build_parser().parse_args([])
    assert args.mode == "both"
    assert args.name is None


def test_client_mode_takes_an_optional_name():
    args = build_parser().parse_args(["client", "Alice"])
    assert args.mode == "client"
    assert args.name == "Alice"


def test_flags_map_to_settings_fields():
    args = build_parser().parse_args(["server", "--port", "9000", "--interval", "0.5", "--target", "3"])
    assert args.port == 9000
    assert args.price_interval == 0.5
    assert args.target_purchases == 3


def test_unknown_mode_is_rejected():
    with pytest.raises(SystemExit):
        main(["auction"])


def test_name_outside_client_mode_is_rejected():
    with pytest.raises(SystemExit):
        main(["server", "Alice"])


def test_invalid_setting_is_a_usage_error():
    with pytest.raises(SystemExit):
        main(["server", "--port", "99999"])


def test_client_exits_with_error_when_server_is_unreachable():
    assert main(["client", "Alice", "--host", "127.0.0.1", "--port", str(free_port())]) == 1


def test_both_mode_runs_to_completion(monkeypatch):
    for name, value in {
        "PRICETICK_START_DELAY": "0",
        "PRICETICK_CLIENT_STAGGER": "0",
        "PRICETICK_MIN_BUDGET": "100",
        "PRICETICK_MAX_BUDGET": "100",
    }.items():
        monkeypatch.setenv(name, value)

    code = main(
        ["both", "--host", "127.0.0.1", "--port", "0", "--clients", "2", "--target", "1", "--interval", "0.05"]
    )

    assert code == 0
