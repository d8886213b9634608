"""Tests for loguru sink configuration."""

from loguru import logger

from spud_engine.logging import setup_logging


def test_file_sink_receives_messages(tmp_path):
    setup_logging(level="DEBUG", log_dir=tmp_path)
    logger.info("order {} confirmed", "ORD0001")
    logger.complete()

    log_file = tmp_path / "spud_engine.log"
    assert log_file.exists()
    assert "order ORD0001 confirmed" in log_file.read_text()
    logger.remove()


def test_file_sink_optional(tmp_path):
    setup_logging(level="INFO", log_dir=None)
    logger.info("stderr only")
    assert list(tmp_path.iterdir()) == []
    logger.remove()
