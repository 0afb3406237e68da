import os

import uvicorn

from surftribe.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(
        level=os.getenv("SURF_LOG_LEVEL", "INFO"),
        job_name="surftribe",
        secrets=(settings.stormglass_api_key, settings.api_key, settings.internal_token),
    )
    logger.info("Starting SurfTribe forecast API")

    uvicorn.run(
        "surftribe.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
