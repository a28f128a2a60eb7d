# src/tasksync/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (store + snapshot reload), then runs
the admin console in the main thread.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..errors import PersistenceWarning
from ..logging_setup import setup_logging
from .console import run_console_loop

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/tasksync")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "tasksync"))

    try:
        state = create_initial_state(settings=settings)
    except PersistenceWarning:
        logger.exception("Snapshot could not be loaded or set aside; refusing to start")
        raise SystemExit(1) from None

    if settings.console_enabled:
        run_console_loop(state)
    else:
        logger.info("Console disabled; nothing to run. Store holds %d task(s).", state.store.count_tasks())

    if state.store.persist_failures:
        logger.warning("Exiting with %d failed snapshot write(s).", state.store.persist_failures)
    logger.info("Bye.")


if __name__ == "__main__":
    main()
