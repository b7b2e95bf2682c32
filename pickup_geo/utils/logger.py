"""
Logging configuration.

Imported once by the application entry point; every other module only asks
for ``logging.getLogger(__name__)``.
"""

import logging

from pickup_geo.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)

# httpx logs every request at INFO, which drowns out provider fallbacks
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger("pickup_geo")
