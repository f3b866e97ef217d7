"""
Streaming example for netreq.

Uploads a body in chunks through a TransportStream and reads the response
body chunk by chunk as it arrives.
"""

import asyncio
import logging

from netreq import Net

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def chunked_upload():
    """Write the request body piece by piece; writes wait while the transport is busy."""
    stream = Net("http://httpbin.org/put").get_stream(
        {"method": "PUT", "headers": {"Content-Type": "text/plain"}, "timeout": 30}
    )

    for i in range(5):
        await stream.write(f"chunk {i}\n")
    await stream.write_end()

    head = await stream.wait_response()
    logger.info(f"Response status: {head.status_code} {head.reason}")
    logger.info(f"Content-Type: {stream.get_header('Content-Type')}")

    body = await stream.aread_text()
    logger.info(f"Response body length: {len(body)} characters")


async def streaming_download():
    """Consume the response body incrementally."""
    stream = Net("http://httpbin.org/stream/20").get_stream()
    await stream.write_end()

    head = await stream.wait_response()
    logger.info(f"Response status: {head.status_code}")

    total = 0
    async for chunk in stream:
        total += len(chunk)
        logger.info(f"Received {len(chunk)} bytes (total {total})")
    logger.info(f"Stream state: {stream.state.value}")


async def main():
    await chunked_upload()
    await streaming_download()


if __name__ == "__main__":
    asyncio.run(main())
