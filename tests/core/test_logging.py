import logging

from concurrent_log_handler import ConcurrentRotatingFileHandler

from app.logging import LogConfig


def test_setup_logging_writes_to_rotating_file(tmp_path):
    app_logger = logging.getLogger("app")
    saved_handlers, saved_level = list(app_logger.handlers), app_logger.level

    try:
        logger = LogConfig(log_dir=tmp_path / "logs").setup_logging("debug")

        assert logger is app_logger
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, ConcurrentRotatingFileHandler) for h in logger.handlers)

        # Module loggers propagate to the app logger
        logging.getLogger("app.services.layer_service").info("layers updated")
        for handler in logger.handlers:
            handler.flush()

        assert "layers updated" in (tmp_path / "logs" / "layers.log").read_text(encoding="utf-8")
    finally:
        for handler in app_logger.handlers:
            handler.close()
        app_logger.handlers[:] = saved_handlers
        app_logger.setLevel(saved_level)
