"""Factory helpers for building the forecast provider clients at startup."""

from __future__ import annotations

import requests

from surftribe import config
from surftribe.data_sources.spitcast_client import SpitcastClient
from surftribe.data_sources.stormglass_client import StormglassClient
from utils.logging_utils import get_tagged_logger, mask_secret

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "stormglass"


def build_session() -> requests.Session:
    """Create the shared HTTP session used by provider clients."""
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    return session


def build_data_source(
    source: str | None = None,
    settings: config.Settings | None = None,
    session: requests.Session | None = None,
) -> SpitcastClient | StormglassClient:
    """Instantiate the named provider client (defaults to `settings.forecast_source`)."""
    settings = settings or config.settings
    source = (source or settings.forecast_source or DEFAULT_SOURCE_NAME).lower()
    session = session or build_session()

    if source == "stormglass":
        if not settings.stormglass_api_key:
            logger.warning("Stormglass API key not configured; forecasts will fail until it is set")
        else:
            logger.info("Using Stormglass data source", extra={"api_key": mask_secret(settings.stormglass_api_key)})
        return StormglassClient(session=session, settings=settings)

    if source == "spitcast":
        logger.info("Using Spitcast data source")
        return SpitcastClient(session=session, settings=settings)

    raise ValueError(f"Unknown forecast source '{source}'")
