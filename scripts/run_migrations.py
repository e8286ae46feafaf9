#!/usr/bin/env python3
"""Apply identity store migrations with Logfire error tracking."""

import sys
import logfire
from alembic import command
from alembic.config import Config

from broker.config import Settings
from broker.util.observability import configure_logfire


def main() -> int:
    """Upgrade the identity store schema to head."""
    settings = Settings()

    configure_logfire(settings)

    try:
        logfire.info(
            "Starting identity store migrations", environment=settings.environment
        )

        command.upgrade(Config("alembic.ini"), "head")

        logfire.info("Identity store migrations completed")
        return 0

    except Exception as e:
        logfire.error(
            "Identity store migration failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        # Re-raise so the deploy fails instead of serving against a stale schema
        raise


if __name__ == "__main__":
    sys.exit(main())
