"""Concurrent index build.

Streams search documents from the resource provider into the search engine
through a bounded queue. The producer always signals end-of-stream, even when
it fails, so the consumer never waits forever.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .search import END_OF_STREAM, SearchEngine

logger = logging.getLogger(__name__)

QUEUE_CAPACITY = 100

Streamer = Callable[[asyncio.Queue], Awaitable[None]]


async def _produce(streamer: Streamer, queue: asyncio.Queue) -> None:
    try:
        await streamer(queue)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error("Error streaming resources for indexing: %s", e)
    await queue.put(END_OF_STREAM)


async def index_resources(streamer: Streamer, engine: SearchEngine, capacity: int = QUEUE_CAPACITY) -> int:
    """Build the search index from ``streamer`` output.

    ``streamer`` is usually ``ResourceProvider.stream_resources``. Returns
    the number of documents indexed, or 0 when the index build fails; the
    failure is logged and the server keeps running without search results.
    Cancelling the caller cancels the producer as well.
    """
    queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
    producer = asyncio.create_task(_produce(streamer, queue))
    count = 0
    try:
        count = await engine.index(queue)
        await producer
    except Exception as e:
        logger.error("Error building search index: %s", e)
    finally:
        if not producer.done():
            producer.cancel()
            try:
                await producer
            except asyncio.CancelledError:
                pass
    return count
