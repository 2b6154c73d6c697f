"""
Logging helpers shared by the forecast service, its provider clients and the HTTP layer.

Usage
-----
At process start (``run_server.py``, a worker, a one-off script):

    from utils.logging_utils import setup_logging

    setup_logging(level="INFO", job_name="weathercache")

In a module:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="providers/openweather")
    logger.info("Fetching current conditions", extra={"latitude": lat})

Every record carries ``job_name`` and ``tag`` so the formatter below can render
them, whether or not ``setup_logging()`` has run yet. Provider API keys travel
in query strings, so handlers also scrub them from rendered messages.
"""

from __future__ import annotations

import logging
import logging.config
import re
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Early records (before setup_logging) still get timestamps and levels.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt=DATE_FORMAT,
)

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"

# Query parameter names whose values never reach a log line.
SECRET_PARAM_TOKENS = ("appid", "apikey", "api_key", "key", "token", "secret", "pass")
MASK = "***"

# urllib3 logs request lines such as "GET /data/2.5/weather?lat=1&appid=abc HTTP/1.1".
_SECRET_IN_TEXT = re.compile(
    r"(?P<name>[\w-]*(?:%s)[\w-]*)=(?P<value>[^&\s\"']+)" % "|".join(SECRET_PARAM_TOKENS),
    re.IGNORECASE,
)

# Third-party loggers that are chatty at DEBUG and log full request URLs.
NOISY_LOGGERS = ("urllib3", "requests")

_CONFIGURED: bool = False


class MaxLevelFilter(logging.Filter):
    """Pass only records at or below ``max_level`` (routes INFO to stdout, WARNING+ to stderr)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Guarantee a ``tag`` attribute on every record.

    Records coming through ``get_tagged_logger`` already have one; anything
    else (uvicorn, requests, urllib3) gets the last segment of its logger name.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if getattr(record, "tag", None) is None:
            record.tag = (record.name or "-").rsplit(".", 1)[-1]
        return True


class JobNameFilter(logging.Filter):
    """Stamp a process-wide ``job_name`` on records that do not carry one."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self.job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if getattr(record, "job_name", None) is None:
            record.job_name = self.job_name
        return True


class SecretRedactingFilter(logging.Filter):
    """Replace credential-looking ``name=value`` pairs in the rendered message with ``name=***``."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def redact_secrets(text: str) -> str:
    """Mask the value of every credential-looking ``name=value`` pair in free text."""
    return _SECRET_IN_TEXT.sub(lambda m: f"{m.group('name')}={MASK}", text)


def _stream_handler(stream: str, level: str, filters: List[str]) -> Dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "formatter": "standard",
        "filters": ["redact_secrets", "ensure_tag", "job_name", *filters],
        "level": level,
        "stream": f"ext://sys.{stream}",
    }


def build_logging_config(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DATE_FORMAT,
    job_name: Optional[str] = None,
    third_party_level: str = "WARNING",
) -> Mapping[str, Any]:
    """
    Build the ``logging.config.dictConfig`` mapping used by ``setup_logging``.

    Parameters
    ----------
    level:
        Root logger level, e.g. ``"DEBUG"`` or ``logging.INFO``.
    log_format:
        Formatter pattern; the default renders job name and tag.
    date_format:
        ``asctime`` pattern.
    job_name:
        Logical process name shown in every line.
    third_party_level:
        Level for ``NOISY_LOGGERS`` so HTTP client internals stay quiet.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "redact_secrets": {"()": SecretRedactingFilter},
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "info_and_below": {"()": MaxLevelFilter, "max_level": logging.INFO},
        },
        "formatters": {"standard": {"format": log_format, "datefmt": date_format}},
        "handlers": {
            "stdout": _stream_handler("stdout", "DEBUG", ["info_and_below"]),
            "stderr": _stream_handler("stderr", "WARNING", []),
        },
        "loggers": {name: {"level": third_party_level} for name in NOISY_LOGGERS},
        "root": {"level": level, "handlers": ["stdout", "stderr"]},
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    override_existing: bool = False,
    **config_kwargs: Any,
) -> None:
    """
    Apply the application logging configuration once per process.

    Repeated calls are no-ops unless ``override_existing`` is True. Extra
    keyword arguments are passed to ``build_logging_config``.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(build_logging_config(level=level, job_name=job_name, **config_kwargs))
    _CONFIGURED = True


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a ``LoggerAdapter`` whose records always carry ``tag``.

    ``tag`` defaults to the last segment of ``name``
    (``"weathercache.forecast_service"`` -> ``"forecast_service"``).
    """
    return logging.LoggerAdapter(logging.getLogger(name), {"tag": tag or name.rsplit(".", 1)[-1]})


def mask_url_secrets(url: str) -> str:
    """Return ``url`` with credential-looking query values and userinfo replaced by ``***``.

    Examples
    --------
    - https://api.openweathermap.org/data/2.5/weather?lat=1&appid=abc
      -> https://api.openweathermap.org/data/2.5/weather?lat=1&appid=%2A%2A%2A
    - redis://:secret@cache:6379/0 -> redis://:***@cache:6379/0
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return url
    if not parts.scheme and not parts.netloc:
        return url

    query = urlencode([
        (name, MASK if any(token in name.lower() for token in SECRET_PARAM_TOKENS) else value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    ])

    host = parts.hostname or ""
    if port:
        host = f"{host}:{port}"
    if parts.username or parts.password is not None:
        user = MASK if parts.username else ""
        password = f":{MASK}" if parts.password is not None else ""
        host = f"{user}{password}@{host}"

    return urlunsplit((parts.scheme, host, parts.path, query, parts.fragment))
