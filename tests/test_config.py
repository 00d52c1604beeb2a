"""Tests for tattva.config."""

import pytest

from tattva.config import DEFAULT_ANALYSIS_API_URL, load_config


def test_defaults():
    config = load_config(environ={"TATTVA_SECRET_KEY": "s"})
    assert config["ANALYSIS_API_URL"] == DEFAULT_ANALYSIS_API_URL
    assert config["USER_HEADER"] == "X-User-Id"
    assert config["TYPING_DELAY"] == 1.2
    assert config["FEED_TOKEN"] == ""


def test_environment_values():
    config = load_config(environ={
        "TATTVA_SECRET_KEY": "s",
        "TATTVA_TYPING_DELAY": "0.8",
        "TATTVA_SUBMIT_TIMEOUT": "30",
        "TATTVA_FEED_TOKEN": "tok",
    })
    assert config["TYPING_DELAY"] == 0.8
    assert config["SUBMIT_TIMEOUT"] == 30.0
    assert config["FEED_TOKEN"] == "tok"


def test_overrides_win():
    config = load_config({"SECRET_KEY": "x", "USER_HEADER": "X-Clerk-User"}, environ={})
    assert config["SECRET_KEY"] == "x"
    assert config["USER_HEADER"] == "X-Clerk-User"


def test_secret_key_is_required():
    with pytest.raises(ValueError, match="TATTVA_SECRET_KEY"):
        load_config(environ={})


def test_bad_number_raises():
    with pytest.raises(ValueError):
        load_config(environ={"TATTVA_SECRET_KEY": "s", "TATTVA_TYPING_DELAY": "soon"})
