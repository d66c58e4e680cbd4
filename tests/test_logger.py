# File: tests/test_logger.py
import logging

from llms_scout.logger import configure, get_logger, init_logging


def test_child_loggers_write_through_project_handlers(tmp_path):
    log_path = tmp_path / "scout.log"
    root = configure(level="DEBUG", log_file=log_path)
    try:
        child = get_logger("crawler")
        assert child.name == "LLMSScout.crawler"
        assert child.parent is root
        assert get_logger() is root
        child.info("batch done")
        for handler in root.handlers:
            handler.flush()
        assert "LLMSScout.crawler | batch done" in log_path.read_text(encoding="utf-8")
        assert not root.propagate
        assert [type(h) for h in root.handlers][0] is logging.StreamHandler
    finally:
        for handler in root.handlers:
            handler.close()
        init_logging()
