"""
Basic netreq example.

Fetches a page with ``get``, submits a form with ``post`` and shows how
the kill-switch and HttpError surface to the caller.
"""

import asyncio
import logging

from netreq import HttpError, Net, NetConfig, TransportError, UsageError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def simple_get_request():
    """Demonstrate a simple GET request with a query string."""
    logger.info("Making simple GET request...")

    body = await Net("http://httpbin.org/get").get(
        query={"name": "netreq", "debug": True},
        headers={"Accept": "application/json"},
        timeout=10,
    )
    logger.info(f"Response body length: {len(body)} characters")


async def post_form():
    """Demonstrate a form POST; the mapping is url-encoded."""
    logger.info("Making POST request with form body...")

    body = await Net("http://httpbin.org/post").post({}, {"message": "Hello, World!"})
    logger.info(f"Response body: {body[:200]}")


async def handle_errors():
    """Demonstrate the errors a caller sees."""
    try:
        await Net("http://httpbin.org/status/404").get()
    except HttpError as e:
        logger.info(f"HTTP error {e.status_code}: {e.message}")

    try:
        await Net("http://localhost:1/").get(timeout=5)
    except TransportError as e:
        logger.info(f"Transport error: {e}")

    config = NetConfig(no_net_requests=True)
    try:
        await Net("http://httpbin.org/get", config=config).get()
    except UsageError as e:
        logger.info(f"Refused: {e}")


async def main():
    await simple_get_request()
    await post_form()
    await handle_errors()


if __name__ == "__main__":
    asyncio.run(main())
