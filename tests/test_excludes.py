"""
Tests for scan exclusion rules.
"""

from envshelf.core.excludes import IGNORED_DIRS, is_env_file_name, parse_extra_ignores


def test_env_file_names():
    assert is_env_file_name(".env")
    assert is_env_file_name(".env.local")
    assert is_env_file_name(".env.production.local")


def test_not_env_file_names():
    assert not is_env_file_name(".envrc")
    assert not is_env_file_name("env")
    assert not is_env_file_name(".env.")
    assert not is_env_file_name("prod.env")


def test_ignored_dirs():
    assert "node_modules" in IGNORED_DIRS
    assert ".git" in IGNORED_DIRS


def test_parse_extra_ignores_empty():
    assert parse_extra_ignores("") == set()


def test_parse_extra_ignores_basic():
    assert parse_extra_ignores("vendor, .venv,coverage/") == {"vendor", ".venv", "coverage"}


def test_parse_extra_ignores_skips_blanks():
    assert parse_extra_ignores(" , ,vendor,") == {"vendor"}
