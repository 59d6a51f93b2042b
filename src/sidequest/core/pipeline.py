"""Concurrent tile render pipeline.

The pipeline turns a lazily generated sequence of frames into a stream of
rendered tiles:

    frame source -> producer thread -> work queue (bounded) -> worker threads
                 -> result queue -> calling thread -> tile consumer

- The producer pulls ``FrameData`` for frame 0, 1, 2, ... until the source
  returns ``None``, splits every frame into tiles and blocks while the work
  queue is full. The queue capacity therefore bounds how far frame
  generation runs ahead of rendering.
- Each worker takes a tile, renders it with its own random generator and puts
  the finished ``Tile`` on the result queue.
- The calling thread passes finished tiles to the consumer in arrival order
  and polls the cancellation source every ``poll_interval_ms``, whether or
  not more tiles are waiting. ``TickResult.EXIT`` stops production; tiles
  already queued are still rendered and delivered before ``run`` returns.
- At most ``tile_queue + threads`` tiles are in flight (queued, rendering or
  awaiting delivery). The producer takes a slot per tile and the calling
  thread frees it after delivery, so a slow consumer holds back frame
  generation and memory stays proportional to that many tiles.

Tiles arrive in completion order, not frame or raster order, and tiles of
several frames may interleave. Tracking frame completion is the consumer's
job (see ``FrameAssembler``).

Any exception from the frame source, a worker or the consumer stops the
pipeline: production halts, queued work is discarded, every thread is joined
and the error is re-raised wrapped in a ``RenderError`` subclass. Exceptions
that are not ``Exception`` subclasses (``KeyboardInterrupt``, ``SystemExit``)
are re-raised unchanged.

Example:
    >>> params = RenderParams(width=256, height=256, tile_size=64, tile_queue=8, threads=4)
    >>> pipeline = RenderPipeline(params)
    >>> stats = pipeline.run(frames, on_tile, lambda: TickResult.RUN)  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from sidequest.camera.base import Camera
from sidequest.core.params import RenderParams, SampleParams
from sidequest.core.tiles import Tile, TileRect, render_tile
from sidequest.errors import (
    ConfigurationError,
    FrameSourceError,
    RenderError,
    TileRenderError,
    TileSinkError,
)
from sidequest.scene.world import Scene

logger = logging.getLogger(__name__)

# Default cadence for polling the cancellation source
DEFAULT_POLL_INTERVAL_MS = 100

# How long the producer blocks for a free slot or queue space before re-checking for a stop
_PUT_TIMEOUT_S = 0.05


class TickResult(Enum):
    """Answer of the cancellation source."""

    RUN = "run"
    EXIT = "exit"


@dataclass(frozen=True)
class FrameData:
    """Everything needed to render one frame, shared read-only by workers.

    Attributes:
        scene: The scene to render.
        camera: Camera producing the primary rays.
        params: Samples per pixel and bounce limit.
    """

    scene: Scene
    camera: Camera
    params: SampleParams


FrameSource = Callable[[int], "FrameData | None"]
TileConsumer = Callable[[Tile], Any]
TickPoll = Callable[[], TickResult]


@dataclass(frozen=True)
class TileWork:
    """One unit of work on the queue.

    Attributes:
        frame_num: Index of the frame the tile belongs to.
        frame: The frame's shared render inputs.
        rect: The part of the frame to render.
        seed: Seed of the random stream dedicated to this tile.
    """

    frame_num: int
    frame: FrameData
    rect: TileRect
    seed: np.random.SeedSequence


@dataclass
class RenderStats:
    """Counters describing a finished pipeline run.

    Attributes:
        frames_started: Frames pulled from the source and (at least partly)
            queued.
        tiles_dispatched: Tiles put on the work queue.
        tiles_completed: Tiles delivered to the consumer.
        cancelled: Whether the cancellation source ended the run.
        elapsed: Wall clock duration of the run in seconds.
    """

    frames_started: int = 0
    tiles_dispatched: int = 0
    tiles_completed: int = 0
    cancelled: bool = False
    elapsed: float = 0.0


class _Shutdown:
    """Work-queue sentinel: one per worker, sent by the producer last."""


class _WorkerExited:
    """Result-queue marker: a worker has left its loop."""


@dataclass(frozen=True)
class _Failure:
    """Result-queue message carrying an error raised off the calling thread."""

    error: BaseException


_SHUTDOWN = _Shutdown()
_WORKER_EXITED = _WorkerExited()


def iter_frames(source: FrameSource, start: int = 0) -> Iterator[tuple[int, FrameData]]:
    """Pull frames from a frame source until it signals the end.

    The source is called with consecutive indices starting at ``start``; a
    ``None`` result ends the sequence. The iterator is not restartable.

    Raises:
        FrameSourceError: Wrapping any exception raised by the source.
    """
    index = start
    while True:
        try:
            frame = source(index)
        except Exception as exc:
            raise FrameSourceError(index, f"frame source failed: {exc}") from exc
        if frame is None:
            return
        yield index, frame
        index += 1


class RenderPipeline:
    """Worker pool, bounded work queue and result channel for tile rendering.

    A pipeline holds only its configuration; every ``run`` creates its own
    queues and threads, and several pipelines can run side by side.

    Attributes:
        params: Output size and scheduling configuration.
    """

    def __init__(self, params: RenderParams) -> None:
        self.params = params

    def run(
        self,
        frame_source: FrameSource,
        tile_consumer: TileConsumer,
        tick_poll: TickPoll,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> RenderStats:
        """Render frames until the source is exhausted or the run is cancelled.

        Args:
            frame_source: Called with frame indices 0, 1, 2, ...; returns the
                frame's ``FrameData`` or ``None`` when there are no more.
            tile_consumer: Called on this thread with every finished tile, in
                the order tiles complete.
            tick_poll: Cancellation source, polled on this thread at least
                every ``poll_interval_ms``. Must be cheap and non-blocking.
            poll_interval_ms: Interval between cancellation polls.

        Returns:
            Counters for the run.

        Raises:
            ConfigurationError: If ``poll_interval_ms`` is not positive.
            FrameSourceError: If the frame source raised.
            TileRenderError: If a worker failed to render a tile.
            TileSinkError: If the tile consumer raised.
        """
        if not isinstance(poll_interval_ms, (int, float)) or poll_interval_ms <= 0:
            raise ConfigurationError(f"poll_interval_ms must be positive, got {poll_interval_ms!r}")

        params = self.params
        poll_interval = poll_interval_ms / 1000.0
        stats = RenderStats()
        work: queue.Queue[TileWork | _Shutdown] = queue.Queue(maxsize=params.tile_queue)
        results: queue.Queue[Tile | _WorkerExited | _Failure] = queue.Queue()
        slots = threading.BoundedSemaphore(params.tile_queue + params.threads)
        stop = threading.Event()
        abort = threading.Event()
        root_seed = np.random.SeedSequence(params.seed)

        producer = threading.Thread(
            target=self._produce,
            args=(frame_source, work, results, slots, stop, root_seed, stats),
            name="sidequest-producer",
            daemon=True,
        )
        workers = [
            threading.Thread(
                target=self._work,
                args=(work, results, abort),
                name=f"sidequest-worker-{i}",
                daemon=True,
            )
            for i in range(params.threads)
        ]

        logger.info(
            "Starting render: %dx%d, %d tiles/frame, %d threads, queue depth %d",
            params.width,
            params.height,
            params.tiles_per_frame(),
            params.threads,
            params.tile_queue,
        )
        start = time.perf_counter()
        producer.start()
        for worker in workers:
            worker.start()

        exited = 0
        next_tick = time.monotonic() + poll_interval
        try:
            while exited < len(workers):
                # Deliver tiles until the next poll is due
                while True:
                    timeout = max(0.0, next_tick - time.monotonic())
                    try:
                        message = results.get(timeout=timeout)
                    except queue.Empty:
                        break
                    if isinstance(message, Tile):
                        self._deliver(message, tile_consumer)
                        slots.release()
                        stats.tiles_completed += 1
                    elif isinstance(message, _Failure):
                        raise message.error
                    else:
                        exited += 1
                        if exited == len(workers):
                            break
                    if time.monotonic() >= next_tick:
                        break

                if time.monotonic() < next_tick:
                    continue
                next_tick = time.monotonic() + poll_interval
                if not stop.is_set() and self._tick(tick_poll) is TickResult.EXIT:
                    logger.info("Cancellation requested; draining in-flight tiles")
                    stats.cancelled = True
                    stop.set()
        except BaseException as exc:
            logger.error("Render aborted: %s", exc)
            abort.set()
            stop.set()
            self._drain(results, len(workers) - exited)
            self._join(producer, workers)
            raise

        self._join(producer, workers)
        stats.elapsed = time.perf_counter() - start
        logger.info(
            "Render finished: %d frames, %d/%d tiles in %.2fs%s",
            stats.frames_started,
            stats.tiles_completed,
            stats.tiles_dispatched,
            stats.elapsed,
            " (cancelled)" if stats.cancelled else "",
        )
        return stats

    def _produce(
        self,
        frame_source: FrameSource,
        work: queue.Queue,
        results: queue.Queue,
        slots: threading.BoundedSemaphore,
        stop: threading.Event,
        root_seed: np.random.SeedSequence,
        stats: RenderStats,
    ) -> None:
        """Producer thread: pull frames, split them into tiles, fill the queue."""
        params = self.params
        try:
            frames = iter_frames(frame_source)
            while not stop.is_set():
                try:
                    frame_num, frame = next(frames)
                except StopIteration:
                    logger.debug("Frame source exhausted after %d frames", stats.frames_started)
                    break

                logger.debug("Frame %d: streaming", frame_num)
                stats.frames_started += 1
                for rect in params.tile_rects():
                    seed = np.random.SeedSequence(
                        root_seed.entropy, spawn_key=(frame_num, rect.index)
                    )
                    item = TileWork(frame_num=frame_num, frame=frame, rect=rect, seed=seed)
                    if not self._put(work, item, slots, stop):
                        logger.debug("Frame %d: stopped after %d tiles", frame_num, rect.index)
                        return
                    stats.tiles_dispatched += 1
                logger.debug("Frame %d: all tiles dispatched", frame_num)
        except BaseException as exc:
            results.put(_Failure(exc))
        finally:
            for _ in range(params.threads):
                work.put(_SHUTDOWN)

    @staticmethod
    def _put(
        work: queue.Queue,
        item: TileWork,
        slots: threading.BoundedSemaphore,
        stop: threading.Event,
    ) -> bool:
        """Take an in-flight slot and queue the tile; give up once a stop is requested."""
        while not slots.acquire(timeout=_PUT_TIMEOUT_S):
            if stop.is_set():
                return False
        while not stop.is_set():
            try:
                work.put(item, timeout=_PUT_TIMEOUT_S)
            except queue.Full:
                continue
            return True
        slots.release()
        return False

    def _work(self, work: queue.Queue, results: queue.Queue, abort: threading.Event) -> None:
        """Worker thread: render queued tiles until the shutdown sentinel."""
        params = self.params
        try:
            while True:
                item = work.get()
                if item is _SHUTDOWN:
                    break
                if abort.is_set():
                    continue
                rng = np.random.default_rng(item.seed)
                try:
                    tile = render_tile(
                        item.frame_num, item.frame, item.rect, params.width, params.height, rng
                    )
                except TileRenderError as exc:
                    abort.set()
                    results.put(_Failure(exc))
                except Exception as exc:
                    abort.set()
                    error = TileRenderError(item.frame_num, item.rect.left, item.rect.top, str(exc))
                    error.__cause__ = exc
                    results.put(_Failure(error))
                except BaseException as exc:
                    # Re-raised unchanged by run() on the calling thread
                    abort.set()
                    results.put(_Failure(exc))
                else:
                    results.put(tile)
        finally:
            results.put(_WORKER_EXITED)

    @staticmethod
    def _deliver(tile: Tile, tile_consumer: TileConsumer) -> None:
        try:
            tile_consumer(tile)
        except RenderError:
            raise
        except Exception as exc:
            raise TileSinkError(tile.frame_num, tile.left, tile.top, f"tile consumer failed: {exc}") from exc

    @staticmethod
    def _tick(tick_poll: TickPoll) -> TickResult:
        try:
            return tick_poll()
        except Exception as exc:
            raise RenderError(f"cancellation source failed: {exc}") from exc

    @staticmethod
    def _drain(results: queue.Queue, running: int) -> None:
        """Discard results until ``running`` more workers have exited."""
        while running > 0:
            message = results.get()
            if message is _WORKER_EXITED:
                running -= 1

    @staticmethod
    def _join(producer: threading.Thread, workers: list[threading.Thread]) -> None:
        producer.join()
        for worker in workers:
            worker.join()


def render_pipeline(
    frame_source: FrameSource,
    tile_consumer: TileConsumer,
    tick_poll: TickPoll,
    poll_interval_ms: int,
    render_params: RenderParams,
) -> RenderStats:
    """Run a ``RenderPipeline`` once; see ``RenderPipeline.run``."""
    return RenderPipeline(render_params).run(
        frame_source, tile_consumer, tick_poll, poll_interval_ms
    )
