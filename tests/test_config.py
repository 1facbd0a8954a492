"""Tests for config loading and the user context."""
import pytest
from quiz_session.auth import UserContext
from quiz_session.config import DEFAULT_CONFIG, load_config


def test_defaults_without_path():
    assert load_config() == DEFAULT_CONFIG


def test_missing_file_uses_defaults(tmp_path):
    assert load_config(str(tmp_path / "nope.yaml")) == DEFAULT_CONFIG


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(str(path)) == DEFAULT_CONFIG


def test_file_overrides_are_merged(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("quiz:\n  minimum_score_percentage: 80\napi:\n  base_url: https://quiz.example\n")
    config = load_config(str(path))
    assert config["quiz"]["minimum_score_percentage"] == 80
    assert config["quiz"]["default_time_limit"] == 30
    assert config["api"]["base_url"] == "https://quiz.example"
    assert config["session"]["max_age_seconds"] == 86400


def test_defaults_are_not_mutated(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("session:\n  db_path: other.db\n")
    load_config(str(path))
    assert DEFAULT_CONFIG["session"]["db_path"] == "quiz_sessions.db"


def test_non_mapping_config_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_user_context_authentication():
    assert UserContext("u1").is_authenticated() is True
    assert UserContext.anonymous().is_authenticated() is False
    assert UserContext("").is_authenticated() is False


def test_user_context_auth_headers():
    assert UserContext("u1", token="t").auth_headers() == {"Authorization": "Bearer t"}
    assert UserContext("u1").auth_headers() == {}
