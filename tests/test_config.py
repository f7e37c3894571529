"""Tests for environment parsing helpers."""

from skytrack.config import _parse_bool, _parse_optional_float, _parse_region, load_config


def test_parse_region():
    assert _parse_region('30, -10, 50, 10') == (30.0, -10.0, 50.0, 10.0)
    assert _parse_region('') is None
    assert _parse_region('1,2,3') is None
    assert _parse_region('a,b,c,d') is None


def test_parse_bool():
    assert _parse_bool('1') is True
    assert _parse_bool('True') is True
    assert _parse_bool('0') is False
    assert _parse_bool('') is False


def test_parse_optional_float():
    assert _parse_optional_float('') is None
    assert _parse_optional_float('12.5') == 12.5
    assert _parse_optional_float('soon') is None


def test_load_config_reads_region(monkeypatch):
    monkeypatch.setenv('DEFAULT_REGION', '30,-10,50,10')
    monkeypatch.setenv('FLASK_DEBUG', '1')
    cfg = load_config()
    assert cfg.default_region == (30.0, -10.0, 50.0, 10.0)
    assert cfg.debug is True
    assert cfg.refresh.poll_interval > 0
