"""Test logging setup, context fields and handler lifecycle.

Tests for epicycle_tracer.utils.logging_config:
    - setup_logging() is idempotent (no duplicated handlers)
    - JSON file output carries context fields
    - Human format renders context between pipes
    - shutdown() detaches everything it installed
"""

import json
import logging
import logging.handlers

import pytest

from epicycle_tracer.utils import logging_config


@pytest.fixture(autouse=True)
def clean_logging():
    root_level = logging.getLogger().level
    yield
    logging.getLogger().setLevel(root_level)
    logging_config.shutdown()
    logging_config.pop_context()


def _record(msg="hello", level=logging.INFO):
    return logging.LogRecord("test", level, __file__, 1, msg, None, None)


def test_setup_idempotent(tmp_path):
    root = logging.getLogger()
    before = len(root.handlers)

    logging_config.setup_logging("INFO", str(tmp_path / "a.log"))
    handlers = logging_config.setup_logging("INFO", str(tmp_path / "a.log"))

    assert len(handlers) == 2
    assert len(root.handlers) == before + 2


def test_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        logging_config.setup_logging("CHATTY")


def test_unknown_rotation(tmp_path):
    with pytest.raises(ValueError, match="rotation"):
        logging_config.setup_logging(
            "INFO", str(tmp_path / "a.log"), to_stderr=False, rotate={"mode": "weekly"}
        )


def test_size_rotation_handler(tmp_path):
    (handler,) = logging_config.setup_logging(
        "INFO", str(tmp_path / "logs" / "a.log"), to_stderr=False,
        rotate={"mode": "size", "max_bytes": 1000, "backup_count": 1},
    )
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert (tmp_path / "logs").is_dir()


def test_json_file_with_context(tmp_path):
    log_file = tmp_path / "trace.log"
    logging_config.setup_logging(
        "INFO", str(log_file), json=True, to_stderr=False, context={"app": "trace"}
    )
    logging_config.push_context(stage="thin")
    logging.getLogger("epicycle_tracer.test").info("pass done")
    logging_config.shutdown()

    payload = json.loads(log_file.read_text().strip().splitlines()[-1])
    assert payload['msg'] == "pass done"
    assert payload['lvl'] == "INFO"
    assert payload['app'] == "trace"
    assert payload['stage'] == "thin"


def test_level_filters_file(tmp_path):
    log_file = tmp_path / "trace.log"
    logging_config.setup_logging("WARNING", str(log_file), to_stderr=False)
    logging.getLogger("epicycle_tracer.test").info("quiet")
    logging.getLogger("epicycle_tracer.test").warning("loud")
    logging_config.shutdown()

    text = log_file.read_text()
    assert "loud" in text
    assert "quiet" not in text


def test_human_format_context():
    logging_config.push_context(image="shape_0.png", stage="order")
    line = logging_config.ContextFormatter("human", use_color=False).format(_record())
    assert "| image=shape_0.png stage=order | hello" in line
    assert "INFO" in line


def test_human_format_without_context():
    line = logging_config.ContextFormatter("human", use_color=False).format(_record())
    assert line.endswith("| hello")
    assert "=" not in line


def test_formatter_rejects_unknown_mode():
    with pytest.raises(ValueError):
        logging_config.ContextFormatter("xml")


def test_pop_context_keys():
    logging_config.push_context(image="a.png", stage="thin")
    logging_config.pop_context(keys=["stage", "missing"])
    payload = json.loads(logging_config.ContextFormatter("json").format(_record()))
    assert payload['image'] == "a.png"
    assert "stage" not in payload


def test_shutdown_removes_handlers(tmp_path):
    root = logging.getLogger()
    before = set(root.handlers)
    installed = logging_config.setup_logging("INFO", str(tmp_path / "a.log"))
    logging_config.shutdown()

    assert set(root.handlers) == before
    assert not any(h in root.handlers for h in installed)


def test_quiet_libs():
    logging_config.setup_logging("DEBUG", to_stderr=False, quiet_libs=["PIL"])
    assert logging.getLogger("PIL").level == logging.WARNING
