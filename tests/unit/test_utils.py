"""
Unit Tests for logging setup and the exception hierarchy
"""
import logging
import pytest

from aiie.utils import (
    AppropriatenessError,
    CaseNotFoundError,
    InputError,
    RuleEvaluationError,
    get_logger,
    setup_logging,
)
from aiie.utils.logging import StructuredFormatter


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogging:

    def test_setup_is_repeatable(self, restore_root_logger):
        setup_logging("DEBUG")
        setup_logging("WARNING")
        ours = [h for h in restore_root_logger.handlers if getattr(h, "_aiie_handler", False)]
        assert len(ours) == 1
        assert restore_root_logger.level == logging.WARNING

    def test_file_handler(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "aiie.log"
        setup_logging("INFO", str(log_file))
        get_logger("aiie.test").info("ranked 4 options")
        for handler in restore_root_logger.handlers:
            handler.flush()
        assert "ranked 4 options" in log_file.read_text()

    def test_formatter_without_color(self):
        record = logging.LogRecord("aiie.engine", logging.INFO, __file__, 1, "hello", None, None)
        line = StructuredFormatter(use_color=False).format(record)
        assert "[aiie.engine] hello" in line
        assert "\033[" not in line


class TestExceptions:

    def test_hierarchy(self):
        for exc in (InputError("bad"), CaseNotFoundError("x"), RuleEvaluationError("boom")):
            assert isinstance(exc, AppropriatenessError)

    def test_input_error_carries_field(self):
        exc = InputError("age is required", field="age", details={"value": "None"})
        assert exc.to_dict() == {
            "error": "INPUT_ERROR",
            "message": "age is required",
            "details": {"field": "age", "value": "None"},
        }

    def test_case_not_found_message(self):
        assert str(CaseNotFoundError("ankle")) == "Case not found: ankle"
