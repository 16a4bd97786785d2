import logging
import traceback
from typing import Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


def _resolve_level(level: Union[int, str]) -> int:
	"""Turn a level name or number into a logging level; unknown names become INFO."""
	if isinstance(level, str):
		level = logging.getLevelName(level.strip().upper())
		if not isinstance(level, int):
			return logging.INFO
	return level


def setup_logging(level: Optional[Union[int, str]] = None, fmt: Optional[str] = None) -> None:
	"""Configure root logging.

	The first call installs a handler with fmt (or DEFAULT_FORMAT) at level,
	INFO when level is None. Later calls keep the existing handlers and only
	apply level to the root logger when one is given.
	"""
	root = logging.getLogger()
	if root.handlers:
		if level is not None:
			root.setLevel(_resolve_level(level))
		return
	logging.basicConfig(level=_resolve_level(logging.INFO if level is None else level), format=fmt or DEFAULT_FORMAT)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	"""Return a module/logger by name, after ensuring logging is configured."""
	setup_logging()
	return logging.getLogger(name) if name else logging.getLogger(__name__)


def log_exception(logger: logging.Logger, message: str = "An error occurred", exc_info: Exception = None) -> None:
	"""Centralized exception logging with full traceback.

	Args:
		logger: Logger instance to use
		message: Custom error message to log before the traceback
		exc_info: Exception instance (if None, uses current exception context)
	"""
	logger.error(message)
	if exc_info is not None:
		logger.error(f"Exception type: {type(exc_info).__name__}")
		logger.error(f"Exception message: {str(exc_info)}")
	logger.error("Full traceback:")
	logger.error(traceback.format_exc())


def redact(value: Optional[str], visible: int = 4) -> str:
	"""Mask a secret for log output, keeping at most the first `visible` characters."""
	if not value:
		return "<unset>"
	if len(value) <= visible * 2:
		return "****"
	return f"{value[:visible]}****"
