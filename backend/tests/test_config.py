import pytest

from ladder import config
from ladder.utils.sentry import init_sentry, parse_sample_rate


@pytest.mark.parametrize(
    "raw, expected",
    [(None, "/api"), ("", "/api"), ("v1", "/v1"), ("/ladder/", "/ladder"), ("/", "/")],
)
def test_canon_prefix(raw, expected) -> None:
    assert config._canon_prefix(raw) == expected


def test_parse_allowed_origins() -> None:
    assert config.parse_allowed_origins(None) == []
    assert config.parse_allowed_origins(" https://a.example , ,https://b.example") == [
        "https://a.example",
        "https://b.example",
    ]
    with pytest.raises(ValueError):
        config.parse_allowed_origins("https://a.example,*")


def test_parse_int_and_flag(monkeypatch) -> None:
    monkeypatch.setenv("LADDER_TEST_INT", "1500")
    assert config._parse_int("LADDER_TEST_INT", 1000) == 1500
    monkeypatch.setenv("LADDER_TEST_INT", "lots")
    assert config._parse_int("LADDER_TEST_INT", 1000) == 1000

    monkeypatch.setenv("LADDER_TEST_FLAG", "off")
    assert config._parse_flag("LADDER_TEST_FLAG", True) is False
    monkeypatch.setenv("LADDER_TEST_FLAG", "Yes")
    assert config._parse_flag("LADDER_TEST_FLAG", False) is True
    monkeypatch.delenv("LADDER_TEST_FLAG")
    assert config._parse_flag("LADDER_TEST_FLAG", True) is True


@pytest.mark.parametrize(
    "raw, expected", [(None, 0.0), ("0.25", 0.25), ("abc", 0.0), ("-1", 0.0), ("2", 0.0)]
)
def test_parse_sample_rate(monkeypatch, raw, expected) -> None:
    if raw is None:
        monkeypatch.delenv("SENTRY_TRACES_SAMPLE_RATE", raising=False)
    else:
        monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", raw)
    assert parse_sample_rate("SENTRY_TRACES_SAMPLE_RATE") == expected


def test_sentry_skipped_without_dsn(monkeypatch) -> None:
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    assert init_sentry() is False
