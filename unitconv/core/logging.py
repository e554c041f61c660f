import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import IO, Any, Dict, Optional

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        rid = request_id_ctx.get()
        record.request_id = rid or "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        base: Dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "request_id": getattr(record, "request_id", "-"),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


def init_logging(
    debug: bool = False, *, quiet: bool = False, stream: Optional[IO[str]] = None
) -> None:
    """Configure the root logger with a single JSON handler.

    ``quiet`` raises the threshold to WARNING so interactive output stays
    readable; the CLI uses it unless ``--debug`` is given. Log lines go to
    stderr unless another stream is provided.
    """
    root = logging.getLogger()
    root.handlers.clear()
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    root.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


async def request_context_middleware(request, call_next):  # type: ignore
    rid = str(uuid.uuid4())
    token = request_id_ctx.set(rid)
    logger = logging.getLogger("unitconv.request")
    logger.debug("request start %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
    finally:
        logger.debug("request end")
        request_id_ctx.reset(token)
