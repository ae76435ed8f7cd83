import logging
import os
import sys


logger = logging.getLogger("cachedcheckout")
HANDLER_NAME = "cachedcheckout-stdout"

_ANNOTATIONS = {
    logging.DEBUG: "::debug::",
    logging.WARNING: "::warning::",
    logging.ERROR: "::error::",
    logging.CRITICAL: "::error::",
}


class AnnotationFormatter(logging.Formatter):
    """Prefix records with workflow command annotations when running under GitHub Actions."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return _ANNOTATIONS.get(record.levelno, "") + message


def running_in_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def configure_logging(debug: bool):
    """
    Configures the logging system based on the debug flag.
    """
    if running_in_actions():
        formatter: logging.Formatter = AnnotationFormatter("%(message)s")
    else:
        formatter = logging.Formatter("%(message)s")

    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    # Replace our handler so it writes to the current stdout
    for existing in [h for h in logger.handlers if h.get_name() == HANDLER_NAME]:
        logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
