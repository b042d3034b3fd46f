"""Periodic trigger: run a processing cycle every N minutes."""

from __future__ import annotations

import threading
from typing import Callable

from .constants import WATCH_INITIAL_DELAY_SECONDS
from .errors import CycleAlreadyRunning, TransportError
from .log import get_logger
from .models import CycleResult
from .service import OrganizerService

logger = get_logger(__name__)


def run_periodically(
    service: OrganizerService,
    stop_event: threading.Event,
    interval_minutes: int | None = None,
    initial_delay: float = WATCH_INITIAL_DELAY_SECONDS,
    on_result: Callable[[CycleResult], None] | None = None,
) -> int:
    """Run cycles until stop_event is set; returns the number of cycles run.

    Without an explicit interval the stored processing interval is re-read
    after every cycle, so a settings change takes effect on the next tick.
    AuthRequired stops the loop and propagates: unattended runs must not keep
    failing silently when the user needs to sign in again.
    """
    cycles = 0
    if stop_event.wait(initial_delay):
        return cycles

    while not stop_event.is_set():
        try:
            result = service.process_now()
            cycles += 1
            if on_result:
                on_result(result)
        except CycleAlreadyRunning:
            logger.warning("Previous cycle still running, skipping this tick.")
        except TransportError as exc:
            logger.error("Processing cycle failed: %s", exc)

        minutes = interval_minutes or service.get_settings().processing_interval_minutes
        logger.debug("Next cycle in %d minutes.", minutes)
        if stop_event.wait(minutes * 60):
            break

    return cycles
