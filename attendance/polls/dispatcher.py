"""Single inbound request channel.

All create, action and render-attachment requests go through one queue and are
handled one at a time, including the snapshot write, so no two mutations ever
interleave.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from attendance.polls.dtos import (
    ActionRequest,
    ActionResult,
    CreateEventRequest,
    CreateEventResult,
    RenderAttachmentRequest,
)
from attendance.polls.engine import AttendanceEngine

logger = logging.getLogger(__name__)

Request = CreateEventRequest | ActionRequest | RenderAttachmentRequest
Outcome = CreateEventResult | ActionResult | bool | None


@dataclass
class _Envelope:
    request: Request
    future: asyncio.Future


class RequestDispatcher:
    def __init__(self, engine: AttendanceEngine) -> None:
        self.engine = engine
        self._queue: asyncio.Queue[_Envelope] = asyncio.Queue()
        self._worker: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._run())
        logger.info("Request dispatcher started")

    async def stop(self) -> None:
        """Stop the worker. Requests still waiting for an outcome are cancelled."""
        if self._worker is None:
            return
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None

        dropped = 0
        while not self._queue.empty():
            envelope = self._queue.get_nowait()
            envelope.future.cancel()
            self._queue.task_done()
            dropped += 1
        if dropped:
            logger.warning("Dropped %d pending request(s) on shutdown", dropped)
        logger.info("Request dispatcher stopped")

    async def submit(self, request: Request) -> Outcome:
        """Queue a request and wait for its outcome.

        Exceptions raised while handling the request are re-raised here.
        """
        if not self.running:
            raise RuntimeError("Request dispatcher is not running")
        future = asyncio.get_running_loop().create_future()
        await self._queue.put(_Envelope(request=request, future=future))
        return await future

    async def _run(self) -> None:
        while True:
            envelope = await self._queue.get()
            try:
                outcome = await self._dispatch(envelope.request)
            except asyncio.CancelledError:
                envelope.future.cancel()
                raise
            except Exception as e:
                if not envelope.future.done():
                    envelope.future.set_exception(e)
            else:
                if not envelope.future.done():
                    envelope.future.set_result(outcome)
            finally:
                self._queue.task_done()

    async def _dispatch(self, request: Request) -> Outcome:
        if isinstance(request, CreateEventRequest):
            return await self.engine.create_event(request)
        if isinstance(request, ActionRequest):
            return await self.engine.apply_action(request)
        if isinstance(request, RenderAttachmentRequest):
            return await self.engine.attach_render_ref(request)
        raise TypeError(f"Unsupported request type: {type(request).__name__}")
