import logging

from backend.app.logger import LOGGER_NAME, setup_logging


def _own_handlers(logger):
    return [h for h in logger.handlers if getattr(h, "_swiftnotes", False)]


def test_setup_logging_writes_to_file(tmp_path):
    log_file = tmp_path / "logs" / "swiftnotes.log"
    logger = setup_logging(logging.INFO, file_path=log_file)
    try:
        logger.info("parsed %d tasks", 3)
        for h in logger.handlers:
            h.flush()

        assert log_file.exists()
        line = log_file.read_text(encoding="utf-8").strip()
        assert "INFO" in line
        assert line.endswith("parsed 3 tasks")
    finally:
        for h in _own_handlers(logger):
            logger.removeHandler(h)
            h.close()


def test_setup_logging_replaces_previous_handlers():
    setup_logging(logging.INFO)
    logger = setup_logging(logging.DEBUG)
    try:
        assert logger.name == LOGGER_NAME
        assert len(_own_handlers(logger)) == 1
        assert logger.level == logging.DEBUG
    finally:
        for h in _own_handlers(logger):
            logger.removeHandler(h)
            h.close()
