import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from attendance.polls.dispatcher import RequestDispatcher
from attendance.polls.dtos import (
    ActionKind,
    ActionRequest,
    AttendanceError,
    CreateEventRequest,
    EventAlreadyExistsError,
    RenderAttachmentRequest,
    RenderRef,
    RosterView,
)
from attendance.polls.notifier import LateActionNotifier, get_late_action_notifier
from attendance.polls.urls import (
    POLL_ACTION_URL,
    POLL_RENDER_REF_URL,
    POLL_URL,
    POLLS_URL,
    SNAPSHOT_URL,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class CreatePollSubmit(BaseModel):
    date_text: str = Field(description="Format: YYYY-MM-DD HH:MM")
    description: str = Field(min_length=1)
    title: str | None = None
    id_hint: str | None = None
    explicit_deadline_minutes: float | None = Field(
        default=None,
        description="Minutes until the registration deadline (default: 24h before the event)",
    )


class ActionSubmit(BaseModel):
    participant_name: str = Field(min_length=1)


class RenderRefSubmit(BaseModel):
    channel_id: str
    message_id: str


class RosterResponse(BaseModel):
    event_id: str
    title: str
    description: str
    event_date_text: str
    deadline_text: str
    signed_up_names: list[str]
    signed_off_names: list[str]
    signed_up_header: str
    signed_off_header: str
    signed_up_text: str
    signed_off_text: str

    @classmethod
    def from_view(cls, view: RosterView) -> "RosterResponse":
        return cls(
            event_id=view.event_id,
            title=view.title,
            description=view.description,
            event_date_text=view.event_date_text,
            deadline_text=view.deadline_text,
            signed_up_names=list(view.signed_up_names),
            signed_off_names=list(view.signed_off_names),
            signed_up_header=view.signed_up_header,
            signed_off_header=view.signed_off_header,
            signed_up_text=view.signed_up_text,
            signed_off_text=view.signed_off_text,
        )


class CreatePollResponse(BaseModel):
    event_id: str
    roster: RosterResponse
    persisted: bool


class ActionResponse(BaseModel):
    roster: RosterResponse
    late: bool
    persisted: bool


def get_dispatcher(request: Request) -> RequestDispatcher:
    """Dependency to get the running request dispatcher."""
    return request.app.state.dispatcher


def _not_found(event_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={"error": "NotFound", "message": f"Event '{event_id}' not found"},
    )


@router.post(POLLS_URL, response_model=CreatePollResponse, status_code=201)
async def create_poll(
    poll: CreatePollSubmit,
    dispatcher: RequestDispatcher = Depends(get_dispatcher),
) -> CreatePollResponse:
    """
    Create an attendance poll.

    The deadline is ``explicit_deadline_minutes`` from now when given,
    otherwise 24 hours before the event. It must lie before the event.
    """
    try:
        result = await dispatcher.submit(
            CreateEventRequest(
                date_text=poll.date_text,
                description=poll.description,
                title=poll.title,
                id_hint=poll.id_hint,
                explicit_deadline_minutes=poll.explicit_deadline_minutes,
            )
        )
    except EventAlreadyExistsError as e:
        raise HTTPException(status_code=409, detail={"error": e.tag, "message": str(e)})
    except AttendanceError as e:
        raise HTTPException(status_code=422, detail={"error": e.tag, "message": str(e)})

    return CreatePollResponse(
        event_id=result.event_id,
        roster=RosterResponse.from_view(result.view),
        persisted=result.persisted,
    )


@router.get(SNAPSHOT_URL)
async def get_snapshot(
    dispatcher: RequestDispatcher = Depends(get_dispatcher),
) -> dict[str, Any]:
    """Read-only view of the durable snapshot, for monitoring."""
    return dispatcher.engine.store.to_snapshot().model_dump(mode="json", by_alias=True)


@router.get(POLL_URL, response_model=RosterResponse)
async def get_poll(
    event_id: str,
    dispatcher: RequestDispatcher = Depends(get_dispatcher),
) -> RosterResponse:
    event = dispatcher.engine.store.get(event_id)
    if event is None:
        raise _not_found(event_id)
    return RosterResponse.from_view(dispatcher.engine.render_view(event))


@router.put(POLL_RENDER_REF_URL)
async def attach_render_ref(
    event_id: str,
    ref: RenderRefSubmit,
    dispatcher: RequestDispatcher = Depends(get_dispatcher),
) -> dict[str, str]:
    found = await dispatcher.submit(
        RenderAttachmentRequest(
            event_id=event_id,
            render_ref=RenderRef(channel_id=ref.channel_id, message_id=ref.message_id),
        )
    )
    if not found:
        raise _not_found(event_id)
    return {"status": "attached"}


@router.post(POLL_ACTION_URL, response_model=ActionResponse)
async def apply_action(
    event_id: str,
    action: ActionKind,
    submit: ActionSubmit,
    dispatcher: RequestDispatcher = Depends(get_dispatcher),
    notifier: LateActionNotifier = Depends(get_late_action_notifier),
) -> ActionResponse:
    """
    Sign a participant up or off.

    Actions after the deadline are accepted and also reported to the log channel.
    """
    result = await dispatcher.submit(
        ActionRequest(event_id=event_id, action=action, participant_name=submit.participant_name)
    )
    if result is None:
        raise _not_found(event_id)

    if result.late_notice is not None:
        try:
            await notifier(result.late_notice)
        except Exception as e:
            logger.error(f"Failed to deliver late-action notice for event {event_id}: {e}")

    return ActionResponse(
        roster=RosterResponse.from_view(result.view),
        late=result.late_notice is not None,
        persisted=result.persisted,
    )
