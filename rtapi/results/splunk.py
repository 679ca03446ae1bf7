"""Forward endpoint results to a Splunk HTTP event collector."""

import asyncio
import json
import logging
import socket
import time
from typing import List, Optional

import aiohttp

from ..core.errors import ForwardError
from ..core.models import EndpointDetails, SplunkEvent, SplunkSettings


def build_event(endpoint: EndpointDetails, settings: SplunkSettings, host: Optional[str] = None) -> SplunkEvent:
    """Wrap one endpoint's results with a timestamp and the local host name."""
    return SplunkEvent(
        time=int(time.time()),
        host=host or socket.gethostname(),
        source=settings.source,
        event=endpoint,
    )


async def send_to_splunk(
    endpoints: List[EndpointDetails],
    settings: SplunkSettings,
    session: Optional[aiohttp.ClientSession] = None,
) -> int:
    """
    POST one event per endpoint, in order.

    The first transport failure or non-2xx response stops forwarding; later
    endpoints are not sent.

    Returns:
        Number of events delivered

    Raises:
        ForwardError: If an event could not be delivered
    """
    logger = logging.getLogger(__name__)
    headers = {
        "Authorization": settings.authkey,
        "Content-Type": "application/json",
    }

    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=30))

    sent = 0
    try:
        for endpoint in endpoints:
            payload = json.dumps(build_event(endpoint, settings).to_dict())
            try:
                async with session.post(settings.url, data=payload, headers=headers) as response:
                    body = await response.text()
                    logger.info(body)
                    if not 200 <= response.status < 300:
                        raise ForwardError(
                            f"Forwarding {endpoint.url} failed: HTTP {response.status}: {body[:200]}"
                        )
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise ForwardError(f"Forwarding {endpoint.url} failed: {e}") from e
            sent += 1
    finally:
        if owns_session:
            await session.close()

    logger.info(f"Forwarded {sent} event(s) to {settings.url}")
    return sent
