import logging
from enum import Enum
from pathlib import Path

from ..logger import get_logger


logger = get_logger(__name__)


class Outcome(Enum):
    SUCCESS = "contact_form.log"
    FAILURE = "contact_form_errors.log"


class _DiagnosticFileHandler(logging.FileHandler):
    def handleError(self, record: logging.LogRecord) -> None:  # noqa: N802
        logger.warning(f"Could not write submission log {self.baseFilename}", exc_info=True)


class SubmissionLog:
    """
    Append-only record of contact form outcomes.

    Successes and failures go to separate files under `log_dir`, one timestamped line per request.
    Writing is best effort: any I/O problem is reported on the diagnostic logger and never raised.
    """

    formatter = logging.Formatter("%(asctime)s - %(message)s", datefmt="%Y-%m-%dT%H:%M:%S%z")

    def __init__(self, log_dir: Path) -> None:
        self.log_dir = Path(log_dir)
        self._handlers: dict[Outcome, logging.Handler] = {}

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.warning(f"Could not create submission log directory {self.log_dir}", exc_info=True)

        for outcome in Outcome:
            handler = _DiagnosticFileHandler(self.log_dir / outcome.value, encoding="utf-8", delay=True)
            handler.setFormatter(self.formatter)
            self._handlers[outcome] = handler

    def record(self, outcome: Outcome, detail: str, caller_address: str) -> None:
        line = f"{detail} (IP: {caller_address})".replace("\r", " ").replace("\n", " ")
        try:
            record = logging.makeLogRecord({"msg": line, "levelno": logging.INFO, "levelname": "INFO"})
            self._handlers[outcome].handle(record)
        except Exception:  # noqa: BLE001
            logger.warning("Could not record submission outcome", exc_info=True)

    def close(self) -> None:
        for handler in self._handlers.values():
            handler.close()
