"""Console entry point for the floq vibe server (``floq-vibe``)."""

from __future__ import annotations

import logging

from floq.core.config.settings import get_settings
from floq.core.server.app import create_app

logger = logging.getLogger(__name__)


def run() -> None:
    """Serve the vibe engine over Streamable HTTP.

    Settings validation refuses a non-loopback ``FLOQ_HOST`` unless
    ``FLOQ_ALLOW_INSECURE_BIND`` is set.
    """
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.floq_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("floq vibe server listening on %s:%d", settings.floq_host, settings.floq_port)
    create_app().run(
        transport="streamable-http",
        host=settings.floq_host,
        port=settings.floq_port,
    )


if __name__ == "__main__":
    run()
