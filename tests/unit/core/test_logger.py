import logging

import pytest

from scopeflow.logger import REDACTED, ScopeFlowLogger, logger, sanitize_log_message


@pytest.fixture
def clean_logger():
    yield logger
    logger.clear_execution_context()


def test_singleton():
    assert ScopeFlowLogger() is logger


@pytest.mark.parametrize(
    "message,expected",
    [
        ("password=hunter2", f"password={REDACTED}"),
        ("connecting with token: 'abc123'", f"connecting with token: '{REDACTED}'"),
        ("Filtered 5 alert entities", "Filtered 5 alert entities"),
    ],
)
def test_sanitize_log_message(message, expected):
    assert sanitize_log_message(message) == expected


def test_execution_context_creates_log_file(tmp_path, clean_logger):
    context = clean_logger.set_execution_context("alarms", "check", tmp_path / "logs", "debug")

    assert clean_logger.get_execution_context() is context
    assert context.execution_name == "alarms"
    assert context.execution_type == "check"
    assert context.log_file.parent == tmp_path / "logs"
    assert context.log_file.name.startswith("check_alarms_")

    clean_logger.debug("api_key=s3cr3t")
    clean_logger.clear_execution_context()

    content = context.log_file.read_text()
    assert "Started check execution: alarms" in content
    assert "Completed execution in" in content
    assert f"api_key={REDACTED}" in content
    assert "s3cr3t" not in content
    assert "[test_execution_context_creates_log_file]" in content
    assert clean_logger.get_execution_context() is None


def test_file_level_is_respected(tmp_path, clean_logger):
    context = clean_logger.set_execution_context("vms", "check", tmp_path, "warning")
    clean_logger.info("not written")
    clean_logger.warning("written")
    clean_logger.clear_execution_context()

    content = context.log_file.read_text()
    assert "written" in content
    assert "not written" not in content


def test_replacing_execution_context(tmp_path, clean_logger):
    first = clean_logger.set_execution_context("alarms", "check", tmp_path, "INFO")
    second = clean_logger.set_execution_context("vms", "check", tmp_path, "INFO")

    assert clean_logger.get_execution_context() is second
    assert second.log_file != first.log_file


def test_records_propagate(caplog, clean_logger):
    with caplog.at_level(logging.INFO, logger="scopeflow"):
        clean_logger.info("secret=abc")

    assert f"secret={REDACTED}" in caplog.text
