"""
Logging setup shared by the SurfTribe forecast service.

Usage
-----
From an entrypoint (API server, refresh job, one-off script):

    from utils.logging_utils import setup_logging

    def main() -> None:
        setup_logging(
            level="INFO",
            job_name="surf_refresh",
            secrets=[settings.stormglass_api_key],
        )
        ...

Inside a module:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="spitcast_client")

    def get_spots() -> None:
        logger.info("Fetching Spitcast spot directory")

Every record then carries `job_name` and `tag` fields, so provider adapters,
the refresh job and the HTTP layer can be told apart in one stream. Configured
credentials are masked in every message, and urllib3/requests are held at
WARNING unless asked otherwise.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Iterable, Mapping, Optional


# ---------------------------------------------------------------------------
# Bootstrap config (logs emitted before setup_logging runs)
# ---------------------------------------------------------------------------

BOOTSTRAP_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
BOOTSTRAP_DATEFMT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=BOOTSTRAP_FORMAT,
    datefmt=BOOTSTRAP_DATEFMT,
)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED: bool = False


# ---------------------------------------------------------------------------
# Record filters
# ---------------------------------------------------------------------------

class MaxLevelFilter(logging.Filter):
    """Pass only records at or below `max_level` (keeps stdout free of warnings)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Guarantee a `tag` attribute on every record.

    Records coming through `get_tagged_logger` already have one; anything
    else (uvicorn, requests, urllib3) gets the last dotted segment of its
    logger name, e.g. "urllib3.connectionpool" -> "connectionpool".
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """Stamp the process-level `job_name` onto records that lack one."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self._job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


class RedactSecretsFilter(logging.Filter):
    """
    Replace known credentials in the rendered message with their masked form.

    Provider error bodies end up in log messages verbatim; any configured
    credential inside one is masked before a handler formats it.
    """

    def __init__(self, secrets: Iterable[Optional[str]] = ()) -> None:
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not self._secrets:
            return True
        message = record.getMessage()
        for secret in self._secrets:
            message = message.replace(secret, mask_secret(secret))
        record.msg = message
        record.args = None
        return True


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

# Connection-pool chatter from the provider clients; one Spitcast forecast is
# a request per day.
HTTP_CLIENT_LOGGERS = ("urllib3", "requests")


def build_logging_config(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    secrets: Iterable[Optional[str]] = (),
    http_client_level: str | int = "WARNING",
) -> Mapping[str, Any]:
    """
    Build a dictConfig mapping with split stdout/stderr handlers.

    Parameters
    ----------
    level:
        Root logger level ("DEBUG", "INFO", logging.INFO, ...).
    job_name:
        Logical process name, e.g. "surftribe" or "surf_refresh".
    secrets:
        Credentials (provider keys, API tokens) to mask wherever they show up
        in a message.
    http_client_level:
        Level for the `urllib3`/`requests` loggers.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "redact_secrets": {"()": RedactSecretsFilter, "secrets": [s for s in secrets if s]},
            "stdout_max_info": {
                "()": MaxLevelFilter,
                "max_level": logging.INFO,
            },
        },
        "formatters": {
            "standard": {
                "format": DEFAULT_LOG_FORMAT,
                "datefmt": DEFAULT_DATE_FORMAT,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name", "redact_secrets", "stdout_max_info"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name", "redact_secrets"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {name: {"level": http_client_level} for name in HTTP_CLIENT_LOGGERS},
        "root": {
            "level": level,
            "handlers": ["stdout", "stderr"],
        },
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    job_name: Optional[str] = None,
    secrets: Iterable[Optional[str]] = (),
    http_client_level: str | int = "WARNING",
    override_existing: bool = False,
) -> None:
    """
    Apply the logging configuration once per process.

    Later calls are no-ops unless `override_existing` is True.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    config_dict = build_logging_config(
        level=level,
        job_name=job_name,
        secrets=secrets,
        http_client_level=http_client_level,
    )
    logging.config.dictConfig(config_dict)
    _CONFIGURED = True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a LoggerAdapter that carries a `tag` on every record.

    If `tag` is omitted the last segment of `name` is used, e.g.
    "surftribe.data_sources.spitcast_client" -> "spitcast_client".
    """
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return logging.LoggerAdapter(base_logger, {"tag": tag})


def mask_secret(value: Optional[str], *, visible: int = 4) -> str:
    """Mask a credential for logging, keeping only its last `visible` characters.

    Examples
    --------
    - "sg-1234567890abcd" -> "*************abcd"
    - "abc" -> "***"
    - None -> ""
    """
    if not value:
        return ""
    if visible <= 0 or len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
