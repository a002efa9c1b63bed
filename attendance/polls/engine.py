"""Applies create and sign-up/sign-off requests to the event store."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, tzinfo
from typing import Protocol
from uuid import uuid4
from zoneinfo import ZoneInfo

from attendance.config.settings import settings
from attendance.polls import clock
from attendance.polls.dtos import (
    ActionKind,
    ActionRequest,
    ActionResult,
    CreateEventRequest,
    CreateEventResult,
    Event,
    EventState,
    LateActionNotice,
    PersistenceError,
    RenderAttachmentRequest,
    RosterView,
)
from attendance.polls.repository.store import EventStore

logger = logging.getLogger(__name__)


class EngineConfig(Protocol):
    timezone: str
    datetime_display_format: str
    default_title_template: str


class AttendanceEngine:
    """Mutates events held by an ``EventStore`` and projects them into roster views.

    Every mutation is followed by a snapshot write. A failed write is logged and
    reported as ``persisted=False``; the in-memory change stays.
    """

    def __init__(
        self,
        store: EventStore,
        config: EngineConfig = settings,
        now: Callable[[], datetime] = clock.utc_now,
    ) -> None:
        self._store = store
        self._config = config
        self._now = now
        self._tz: tzinfo = ZoneInfo(config.timezone)

    @property
    def store(self) -> EventStore:
        return self._store

    def _format(self, ts: datetime) -> str:
        return clock.format_timestamp(ts, self._tz, self._config.datetime_display_format)

    async def _persist(self) -> bool:
        try:
            await asyncio.to_thread(self._store.persist)
        except PersistenceError:
            logger.exception("Snapshot write failed, keeping in-memory state")
            return False
        return True

    async def create_event(self, request: CreateEventRequest) -> CreateEventResult:
        """Validate the date text, compute the deadline and store a new event.

        Raises ``InvalidFormatError``, ``DeadlineAfterEventError`` or
        ``EventAlreadyExistsError``; nothing is stored in those cases.
        """
        event_date = clock.parse_event_datetime(request.date_text, self._tz)
        deadline = clock.compute_deadline(
            event_date,
            explicit_minutes=request.explicit_deadline_minutes,
            now=request.now or self._now(),
        )
        event_id = request.id_hint or uuid4().hex
        event = self._store.create(
            event_id=event_id,
            event_date=event_date,
            deadline=deadline,
            description=request.description,
            title=request.title,
        )
        logger.info("Created event %s for %s", event_id, self._format(event_date))

        persisted = await self._persist()
        return CreateEventResult(event_id=event_id, view=self.render_view(event), persisted=persisted)

    def state_of(self, event: Event, now: datetime | None = None) -> EventState:
        now = now or self._now()
        return EventState.PAST_DEADLINE if now > event.deadline else EventState.OPEN

    async def sign_up(
        self, event_id: str, participant: str, now: datetime | None = None
    ) -> ActionResult | None:
        return await self._apply(event_id, ActionKind.SIGNUP, participant, now)

    async def sign_off(
        self, event_id: str, participant: str, now: datetime | None = None
    ) -> ActionResult | None:
        return await self._apply(event_id, ActionKind.SIGNOFF, participant, now)

    async def apply_action(self, request: ActionRequest) -> ActionResult | None:
        return await self._apply(
            request.event_id, request.action, request.participant_name, request.now
        )

    async def _apply(
        self,
        event_id: str,
        action: ActionKind,
        participant: str,
        now: datetime | None,
    ) -> ActionResult | None:
        event = self._store.get(event_id)
        if event is None:
            logger.info("Ignoring %s by %s: event %s not found", action.value, participant, event_id)
            return None

        if action == ActionKind.SIGNUP:
            event.sign_up(participant)
        else:
            event.sign_off(participant)

        state = self.state_of(event, now)
        late_notice = None
        if state == EventState.PAST_DEADLINE:
            late_notice = LateActionNotice(
                participant_name=participant,
                action=action,
                event_id=event_id,
                event_date_text=self._format(event.event_date),
            )
            logger.info("Late %s by %s for event %s", action.value, participant, event_id)

        persisted = await self._persist()
        return ActionResult(
            view=self.render_view(event),
            state=state,
            late_notice=late_notice,
            persisted=persisted,
        )

    async def attach_render_ref(self, request: RenderAttachmentRequest) -> bool:
        if self._store.attach_render_ref(request.event_id, request.render_ref) is None:
            return False
        await self._persist()
        return True

    def render_view(self, event: Event) -> RosterView:
        event_date_text = self._format(event.event_date)
        title = event.title or self._config.default_title_template.format(
            event_date=event_date_text
        )
        return RosterView(
            event_id=event.id,
            title=title,
            description=event.description,
            event_date_text=event_date_text,
            deadline_text=self._format(event.deadline),
            signed_up_names=tuple(event.signed_up),
            signed_off_names=tuple(event.signed_off),
        )
