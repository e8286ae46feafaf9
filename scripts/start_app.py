#!/usr/bin/env python3
"""Start the identity broker API with Logfire error tracking for startup errors."""

import sys
import logfire
import uvicorn

from broker.config import Settings
from broker.util.logging import setup_logging
from broker.util.observability import configure_logfire


def main() -> int:
    """Start the API server and log any startup errors to Logfire."""
    settings = Settings()

    setup_logging(settings)
    configure_logfire(settings)

    # Refuse to start without a signing key rather than fail every login
    if not settings.auth.jwt_secret:
        logfire.error("AUTH__JWT_SECRET is not configured")
        return 1

    try:
        logfire.info(
            "Starting identity broker",
            environment=settings.environment,
            git_sha=settings.git_sha,
        )

        uvicorn.run(
            "broker.interface.api.app:app",
            host=settings.host,
            port=settings.port,
            log_level="debug" if settings.debug else "info",
        )

        return 0

    except Exception as e:
        logfire.error(
            "Identity broker startup failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        raise


if __name__ == "__main__":
    sys.exit(main())
