import logging

from .settings import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that are noisy at DEBUG/INFO
QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default", "aiosmtplib")


def setup_logging(settings: Settings) -> logging.Logger:
  """Configure the root logger once for the process."""
  level = logging.getLevelName(settings.log_level.upper())
  if not isinstance(level, int):
    level = logging.INFO

  root_logger = logging.getLogger()
  root_logger.setLevel(level)
  if not any(getattr(handler, "_rentpay", False) for handler in root_logger.handlers):
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._rentpay = True  # type: ignore[attr-defined]
    root_logger.addHandler(console_handler)

  for logger_name in QUIET_LOGGERS:
    logging.getLogger(logger_name).setLevel(logging.WARNING)

  return root_logger
