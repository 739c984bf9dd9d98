"""Tests for the concurrent index build."""

import asyncio
import logging
import threading

import pytest

from acdc_mcp.indexing import index_resources
from acdc_mcp.models import SearchDocument
from acdc_mcp.search import SearchEngine


def make_streamer(count: int, fail_after: int | None = None):
    async def stream(queue: asyncio.Queue) -> None:
        for i in range(count):
            if fail_after is not None and i == fail_after:
                raise RuntimeError("disk on fire")
            await queue.put(SearchDocument(uri=f"acdc://docs/doc-{i}", name=f"Doc {i}", content=f"body {i}"))

    return stream


class TestIndexResources:
    """Test streaming documents into the engine."""

    async def test_indexes_all_documents(self, search_engine: SearchEngine):
        """Test that every streamed document is indexed."""
        count = await index_resources(make_streamer(7), search_engine)

        assert count == 7
        assert search_engine.doc_count() == 7

    async def test_small_queue(self, search_engine: SearchEngine):
        """Test that a queue smaller than the stream still drains."""
        count = await index_resources(make_streamer(25), search_engine, capacity=1)

        assert count == 25

    async def test_empty_stream(self, search_engine: SearchEngine):
        """Test indexing nothing."""
        assert await index_resources(make_streamer(0), search_engine) == 0
        assert search_engine.is_ready
        assert search_engine.search("body") == []

    async def test_producer_failure_ends_stream(self, search_engine: SearchEngine, caplog):
        """Test that a failing producer still lets the build finish."""
        with caplog.at_level(logging.ERROR, logger="acdc_mcp.indexing"):
            count = await index_resources(make_streamer(10, fail_after=3), search_engine)

        assert count == 3
        assert "disk on fire" in caplog.text

    async def test_cancellation_stops_producer(self, search_engine: SearchEngine):
        """Test that cancelling the build cancels the producer."""
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def stall(queue: asyncio.Queue) -> None:
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(index_resources(stall, search_engine), timeout=0.2)

        assert started.is_set()
        assert cancelled.is_set()

    async def test_provider_stream(self, acdc_server):
        """Test indexing the real resource provider."""
        count = await index_resources(acdc_server.resources.stream_resources, acdc_server.search_engine)

        assert count == 3
        results = acdc_server.search_engine.search("deployment")
        assert [r.uri for r in results] == ["acdc://legacy/old-guide"]

    async def test_consumer_failure_is_logged(self, caplog):
        """Test that an index failure is logged and the build still returns."""

        class BrokenEngine(SearchEngine):
            async def index(self, queue):
                raise RuntimeError("index exploded")

        engine = BrokenEngine()
        try:
            with caplog.at_level(logging.ERROR, logger="acdc_mcp.indexing"):
                count = await index_resources(make_streamer(10), engine, capacity=1)
        finally:
            engine.close()

        assert count == 0
        assert "index exploded" in caplog.text

    async def test_cancellation_unblocks_full_queue(self):
        """Test that cancelling the build releases a producer blocked on a full queue."""
        queue_full = asyncio.Event()
        put_cancelled = asyncio.Event()

        async def stream(queue: asyncio.Queue) -> None:
            for i in range(5):
                if queue.full():
                    queue_full.set()
                try:
                    await queue.put(SearchDocument(uri=f"acdc://docs/doc-{i}", name=f"Doc {i}"))
                except asyncio.CancelledError:
                    put_cancelled.set()
                    raise

        class StalledEngine(SearchEngine):
            async def index(self, queue):
                await asyncio.Event().wait()

        engine = StalledEngine()
        task = asyncio.create_task(index_resources(stream, engine, capacity=1))
        await asyncio.wait_for(queue_full.wait(), timeout=1.0)
        await asyncio.sleep(0)

        task.cancel()
        done, _ = await asyncio.wait({task}, timeout=1.0)
        engine.close()

        assert task in done
        assert task.cancelled()
        assert put_cancelled.is_set()


class TestEventLoopOffload:
    """Test that blocking work runs off the event loop thread."""

    async def test_reads_and_writes_use_worker_threads(self, acdc_server, monkeypatch):
        """Test that file reads and index writes do not run on the loop thread."""
        loop_thread = threading.get_ident()
        read_threads = []
        write_threads = []

        to_search_document = acdc_server.resources.to_search_document
        write_batch = acdc_server.search_engine._write_batch

        def recording_read(definition):
            read_threads.append(threading.get_ident())
            return to_search_document(definition)

        def recording_write(batch):
            write_threads.append(threading.get_ident())
            write_batch(batch)

        monkeypatch.setattr(acdc_server.resources, "to_search_document", recording_read)
        monkeypatch.setattr(acdc_server.search_engine, "_write_batch", recording_write)

        assert await acdc_server.build() == 3

        assert len(read_threads) == 3
        assert write_threads
        assert loop_thread not in read_threads + write_threads
