"""Rate-limited HTTP attack engine and the per-endpoint adapter around it."""

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, List, Optional, Tuple
from urllib.parse import urlsplit

import aiohttp

from .config import parse_duration
from .errors import EngineError
from .metrics import NANOSECONDS_PER_SECOND, Metrics, Result
from .models import EndpointDetails, EndpointTarget
from .presets import ATTACK_DEFAULTS

_METHOD_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_DONE = object()


@dataclass
class Target:
    """A single static HTTP request, sent unchanged on every hit."""

    method: str
    url: str
    body: bytes = b""
    header: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_endpoint(cls, target: EndpointTarget) -> "Target":
        return cls(
            method=target.method,
            url=target.url,
            body=target.payload,
            header=target.header_items(),
        )


class _Pool:
    """Bookkeeping shared by the pacer and the workers of one attack."""

    def __init__(self):
        self.tasks: List[asyncio.Task] = []
        self.idle = 0

    @property
    def size(self) -> int:
        return len(self.tasks)


class Attacker:
    """
    Issues paced HTTP requests against one target.

    Workers start at ``workers`` and grow on demand up to ``max_workers``
    whenever a hit is due and every worker is busy. Connections are capped
    at ``connections`` through a shared aiohttp connector.
    """

    def __init__(
        self,
        workers: int = 2,
        max_workers: int = 2,
        connections: int = 10,
        timeout: float = ATTACK_DEFAULTS["request_timeout_seconds"],
    ):
        if workers < 0:
            raise EngineError(f"workers must not be negative, got {workers}")
        if max_workers < 1 or max_workers < workers:
            raise EngineError(
                f"max_workers must be at least 1 and at least workers ({workers}), "
                f"got {max_workers}"
            )
        if connections < 1:
            raise EngineError(f"connections must be at least 1, got {connections}")

        self.workers = workers
        self.max_workers = max_workers
        self.connections = connections
        self.timeout = timeout

        logging.basicConfig(
            level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
        )
        self.logger = logging.getLogger(__name__)

    def validate(self, target: Target) -> None:
        """Refuse to start an attack that cannot send a single request."""
        if not _METHOD_TOKEN.match(target.method or ""):
            raise EngineError(f"Invalid HTTP method: {target.method!r}")
        parts = urlsplit(target.url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise EngineError(f"Invalid target URL: {target.url!r}")

    async def hit(self, session: aiohttp.ClientSession, target: Target, seq: int) -> Result:
        """Send one request and time it until the body has been read."""
        result = Result(
            seq=seq,
            code=0,
            timestamp=time.time(),
            latency=0,
            bytes_out=len(target.body),
            method=target.method,
            url=target.url,
        )
        started = time.perf_counter_ns()

        try:
            async with session.request(
                target.method,
                target.url,
                data=target.body or None,
                headers=target.header,
            ) as response:
                body = await response.read()
                result.code = response.status
                result.bytes_in = len(body)
                if not result.success:
                    result.error = f"{response.status} {response.reason or ''}".strip()
        except Exception as e:
            result.error = str(e) or type(e).__name__

        result.latency = time.perf_counter_ns() - started
        return result

    async def _worker(
        self,
        session: aiohttp.ClientSession,
        target: Target,
        ticks: asyncio.Queue,
        results: asyncio.Queue,
        pool: _Pool,
    ) -> None:
        while True:
            pool.idle += 1
            seq = await ticks.get()
            pool.idle -= 1
            if seq is None:
                return
            await results.put(await self.hit(session, target, seq))

    async def _pace(
        self,
        ticks: asyncio.Queue,
        rate: int,
        duration: int,
        pool: _Pool,
        spawn: Callable[[], None],
    ) -> int:
        loop = asyncio.get_running_loop()
        began = loop.time()
        seconds = duration / NANOSECONDS_PER_SECOND

        if rate <= 0:
            # Unthrottled: every worker is started up front and the
            # one-slot queue blocks the pacer while they are all busy
            while pool.size < self.max_workers:
                spawn()
            seq = 0
            while loop.time() - began < seconds:
                await ticks.put(seq)
                seq += 1
            return seq

        hits = int(rate * seconds)
        interval = 1.0 / rate
        for seq in range(hits):
            delay = began + seq * interval - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            if pool.idle - ticks.qsize() <= 0 and pool.size < self.max_workers:
                spawn()
            await ticks.put(seq)
        return hits

    async def attack(self, target: Target, rate: int, duration: int) -> AsyncIterator[Result]:
        """
        Attack the target at ``rate`` requests per second for ``duration``
        nanoseconds, yielding one Result per request as it completes.

        Raises:
            EngineError: If the attack cannot start
        """
        self.validate(target)
        if duration <= 0:
            raise EngineError(f"Attack duration must be positive, got {duration}ns")

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        connector = aiohttp.TCPConnector(limit=self.connections, limit_per_host=self.connections)
        headers = {"User-Agent": ATTACK_DEFAULTS["user_agent"]}

        async with aiohttp.ClientSession(
            timeout=timeout, connector=connector, headers=headers
        ) as session:
            ticks: asyncio.Queue = asyncio.Queue(maxsize=1)
            results: asyncio.Queue = asyncio.Queue()
            pool = _Pool()

            def spawn() -> None:
                pool.tasks.append(
                    asyncio.create_task(self._worker(session, target, ticks, results, pool))
                )

            for _ in range(self.workers):
                spawn()

            async def supervise() -> None:
                try:
                    sent = await self._pace(ticks, rate, duration, pool, spawn)
                    self.logger.info(
                        f"Sent {sent} requests to {target.url} with {pool.size} workers, "
                        "waiting for responses..."
                    )
                    for _ in pool.tasks:
                        await ticks.put(None)
                    await asyncio.gather(*pool.tasks)
                finally:
                    await results.put(_DONE)

            supervisor = asyncio.create_task(supervise())
            try:
                while True:
                    result = await results.get()
                    if result is _DONE:
                        break
                    yield result
                await supervisor
            finally:
                for task in [supervisor] + pool.tasks:
                    if not task.done():
                        task.cancel()


async def query_endpoint(endpoint: EndpointDetails, attacker: Optional[Attacker] = None) -> Metrics:
    """
    Run one endpoint's attack to completion and fold every outcome into Metrics.

    Failed requests are recorded as errors and never retried.
    """
    logger = logging.getLogger(__name__)
    query = endpoint.query
    duration = parse_duration(query.duration)

    if attacker is None:
        attacker = Attacker(
            workers=query.threads,
            max_workers=query.max_threads,
            connections=query.connections,
        )

    logger.info(
        f"Querying {endpoint.target.method} {endpoint.url}: "
        f"{query.request_rate} req/s for {query.duration}"
    )

    metrics = Metrics()
    async for result in attacker.attack(Target.from_endpoint(endpoint.target), query.request_rate, duration):
        metrics.add(result)
    metrics.close()

    logger.info(
        f"  {metrics.requests} requests, {metrics.success * 100:.2f}% success, "
        f"p99 {metrics.latencies.p99 / 1_000_000:.3f}ms"
    )
    return metrics
