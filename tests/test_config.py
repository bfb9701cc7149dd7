import pytest
from datetime import date
from tally_sdk.config import TallyConfig


def test_defaults(monkeypatch):
    for name in ("TALLY_URL", "TALLY_COMPANY", "TALLY_REQUEST_TIMEOUT",
                 "TALLY_RETRY_ATTEMPTS", "TALLY_BOOKS_FROM", "TALLY_SDK_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    config = TallyConfig.from_env()
    assert config.tally_url == "http://localhost:9000"
    assert config.tally_company is None
    assert config.request_timeout == 30
    assert config.retry_attempts == 3
    assert config.books_from is None
    assert config.validate() == []


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TALLY_URL", "http://192.168.1.20:9000/")
    monkeypatch.setenv("TALLY_COMPANY", "Demo Traders")
    monkeypatch.setenv("TALLY_REQUEST_TIMEOUT", "60")
    monkeypatch.setenv("TALLY_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("TALLY_BOOKS_FROM", "20230401")
    config = TallyConfig.from_env()
    assert config.base_url == "http://192.168.1.20:9000"
    assert config.tally_company == "Demo Traders"
    assert config.request_timeout == 60
    assert config.retry_attempts == 5
    assert config.books_from == date(2023, 4, 1)


def test_books_from_iso_and_garbage(monkeypatch):
    monkeypatch.setenv("TALLY_BOOKS_FROM", "2022-04-01")
    assert TallyConfig.from_env().books_from == date(2022, 4, 1)
    monkeypatch.setenv("TALLY_BOOKS_FROM", "April")
    assert TallyConfig.from_env().books_from is None


def test_blank_company_means_active_company(monkeypatch):
    monkeypatch.setenv("TALLY_COMPANY", "   ")
    assert TallyConfig.from_env().tally_company is None


def test_validate_reports_every_problem():
    config = TallyConfig(tally_url="localhost:9000", request_timeout=0, retry_attempts=0)
    assert config.validate() == [
        "TALLY_URL must start with http:// or https://",
        "TALLY_REQUEST_TIMEOUT must be positive",
        "TALLY_RETRY_ATTEMPTS must be at least 1",
    ]


def test_books_from_accepts_tally_format(monkeypatch):
    monkeypatch.setenv("TALLY_BOOKS_FROM", "01-Apr-2023")
    assert TallyConfig.from_env().books_from == date(2023, 4, 1)


def test_malformed_integer_names_the_variable(monkeypatch):
    monkeypatch.setenv("TALLY_REQUEST_TIMEOUT", "thirty")
    with pytest.raises(ValueError, match="TALLY_REQUEST_TIMEOUT must be an integer"):
        TallyConfig.from_env()
