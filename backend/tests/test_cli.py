import json
import sys

import pytest
from jose import jwt
from loguru import logger
from typer.testing import CliRunner

from chat_monitor import cli
from chat_monitor.config import settings
from conftest import FakeCompanyCodeService, failed, ok, sentinel


runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(settings, "LOG_LEVEL", "ERROR")
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def service(monkeypatch):
    fake = FakeCompanyCodeService({
        "628001": ok("628001", "SM01", "PT One"),
        "628002": sentinel("628002", "NOT_FOUND"),
        "628003": failed("628003", "connect timeout"),
    })
    monkeypatch.setattr(cli, "build_service", lambda use_directory: fake)
    return fake


def test_resolve_prints_results_and_summary(service):
    result = runner.invoke(cli.app, ["resolve", "628001", "+628002", "628003", "--no-directory"])

    assert result.exit_code == 0, result.output
    assert "628001\tSM01\tPT One" in result.output
    assert "628003\tERROR\t\t(connect timeout)" in result.output
    assert '{"total": 3, "successful": 1, "errors": 1, "unknown": 1}' in result.output
    assert "companies: SM01" in result.output
    assert service.batches == [["628001", "628002", "628003"]]


def test_resolve_reads_numbers_from_file(service, tmp_path):
    numbers = tmp_path / "numbers.txt"
    numbers.write_text("628001\n\n628002\n628001\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["resolve", "--file", str(numbers), "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert sorted(r["phoneNumber"] for r in payload["results"]) == ["628001", "628002"]
    assert payload["deadlineExceeded"] is False


def test_resolve_without_numbers_exits(service):
    result = runner.invoke(cli.app, ["resolve"])

    assert result.exit_code == 2
    assert service.batches == []


def test_resolve_rejects_zero_concurrency(service):
    result = runner.invoke(cli.app, ["resolve", "628001", "--concurrency", "0"])

    assert result.exit_code != 0
    assert service.batches == []


def test_token_is_signed_with_secret_key():
    result = runner.invoke(cli.app, ["token", "ops", "--role", "superadmin"])

    assert result.exit_code == 0
    claims = jwt.decode(result.output.strip(), settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    assert claims["sub"] == "ops"
    assert claims["role"] == "superadmin"


def test_db_url():
    result = runner.invoke(cli.app, ["db-url"])

    assert result.output.strip() == settings.DATABASE_URL
