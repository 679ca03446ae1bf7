"""Sequential execution of every configured endpoint."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, List

from tqdm import tqdm

from .attacker import query_endpoint
from .config import parse_duration
from .metrics import NANOSECONDS_PER_SECOND, Metrics
from .models import EndpointDetails
from .presets import PROGRESS_TICK_SECONDS

QueryFunc = Callable[[EndpointDetails], Awaitable[Metrics]]


class EndpointRunner:
    """
    Runs the attack for each endpoint, one at a time and in input order.

    Endpoints are never probed concurrently with each other. An optional
    progress bar estimates completion from the summed durations; it is
    purely cosmetic and does not pace the runs.
    """

    def __init__(self, query: QueryFunc = query_endpoint, show_progress: bool = True):
        self.query = query
        self.show_progress = show_progress

        logging.basicConfig(
            level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
        )
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def estimate_seconds(endpoints: List[EndpointDetails]) -> float:
        """
        Sum of all endpoint durations.

        Raises:
            ConfigError: If any duration is malformed
        """
        total = sum(parse_duration(e.query.duration) for e in endpoints)
        return total / NANOSECONDS_PER_SECOND

    async def _show_progress(self, total_seconds: float) -> None:
        started = time.monotonic()
        with tqdm(total=round(total_seconds, 1), unit="s", bar_format="{l_bar}{bar}| {elapsed}") as bar:
            while True:
                await asyncio.sleep(PROGRESS_TICK_SECONDS)
                elapsed = min(time.monotonic() - started, total_seconds)
                bar.n = round(elapsed, 1)
                bar.refresh()
                if elapsed >= total_seconds:
                    return

    async def run(self, endpoints: List[EndpointDetails]) -> List[EndpointDetails]:
        """Query every endpoint and attach its metrics. Returns the same list."""
        total_seconds = self.estimate_seconds(endpoints)

        progress = None
        if self.show_progress and total_seconds > 0:
            self.logger.info(f"rtapi will take {total_seconds:.0f} seconds to run")
            progress = asyncio.create_task(self._show_progress(total_seconds))

        try:
            for i, endpoint in enumerate(endpoints):
                self.logger.info(f"Endpoint {i + 1}/{len(endpoints)}: {endpoint.url}")
                endpoint.attach_metrics(await self.query(endpoint))
        finally:
            if progress is not None and not progress.done():
                progress.cancel()
                try:
                    await progress
                except asyncio.CancelledError:
                    pass

        return endpoints
