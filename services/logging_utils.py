import logging
import os
import sys

from pythonjsonlogger.json import JsonFormatter


class ServiceFilter(logging.Filter):
    """Stamps every record with the service name so mixed logs stay attributable."""

    def filter(self, record):
        record.service = os.getenv('SERVICE_NAME', 'pokemon-compare')
        return True


def setup_logging(level='INFO'):
    """Configure the root logger for structured JSON output on stdout.

    Safe to call more than once; existing root handlers are replaced.
    """
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    formatter = JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s %(service)s",
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
        },
    )
    handler.setFormatter(formatter)
    handler.addFilter(ServiceFilter())
    root_logger.addHandler(handler)

    # urllib3 logs every connection at DEBUG; keep it quiet
    logging.getLogger('urllib3').setLevel(logging.WARNING)
