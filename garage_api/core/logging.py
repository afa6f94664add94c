import logging

from garage_api.core.config import settings
from garage_api.core.request_context import request_id_ctx_var

LOG_FORMAT = "%(asctime)s %(levelname)s request_id=%(request_id)s %(name)s %(message)s"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx_var.get()
        return True


def setup_logging(level: str | None = None) -> None:
    root_logger = logging.getLogger()
    if any(isinstance(f, RequestIdFilter) for h in root_logger.handlers for f in h.filters):
        return

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    root_logger.setLevel((level or settings.log_level).upper())
    root_logger.addHandler(handler)

    # request lines come from the observability middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
