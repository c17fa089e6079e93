import logging
import re
import sys
import uuid
from contextvars import ContextVar, Token
from typing import Optional

NO_REQUEST = "-"
MAX_REQUEST_ID_LENGTH = 64
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]+$")

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def bind_request_id(incoming: Optional[str] = None) -> Token:
    """
    Bind the id for the request being served and return the token to reset it.

    A client-supplied id is kept when it is short and printable, so callers can
    correlate their own logs. Anything else is replaced by a fresh id.
    """
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and _REQUEST_ID_PATTERN.match(incoming):
        rid = incoming
    else:
        rid = uuid.uuid4().hex[:12]
    return request_id_ctx.set(rid)


def get_request_id() -> str:
    """The bound request id, or `-` for work outside a request (CLI, startup)."""
    return request_id_ctx.get() or NO_REQUEST


class RequestContextFilter(logging.Filter):
    """Stamps each record with the id of the request that emitted it."""
    def filter(self, record):
        record.request_id = get_request_id()
        return True


def configure_logging(level: str = "INFO"):
    """Configures the root logger; every line carries the request id column."""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | [%(request_id)s] | %(name)s:%(funcName)s:%(lineno)d - %(message)s"
    ))
    handler.addFilter(RequestContextFilter())
    root.addHandler(handler)

    # One line per Ollama call drowns out request logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


configure_logging()
logger = logging.getLogger("memorai")
