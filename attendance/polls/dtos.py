"""Attendance poll data: the Event record, inbound requests and outbound views."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AttendanceError(Exception):
    """Base class for rejected attendance poll requests."""


class InvalidFormatError(AttendanceError):
    """Raised when an event date text does not match ``YYYY-MM-DD HH:MM``."""

    tag = "InvalidFormat"

    def __init__(self, date_text: str) -> None:
        self.date_text = date_text
        super().__init__(f"Invalid date '{date_text}', expected format YYYY-MM-DD HH:MM")


class DeadlineAfterEventError(AttendanceError):
    """Raised when the registration deadline is not strictly before the event."""

    tag = "DeadlineAfterEvent"

    def __init__(self, deadline: datetime, event_date: datetime) -> None:
        self.deadline = deadline
        self.event_date = event_date
        super().__init__("The registration deadline must be before the event")


class EventAlreadyExistsError(AttendanceError):
    """Raised when creating an event under an id that is already taken."""

    tag = "EventAlreadyExists"

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"Event '{event_id}' already exists")


class PersistenceError(Exception):
    """Raised when the snapshot could not be written to durable storage."""

    def __init__(self, path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not write snapshot to {path}: {reason}")


class ActionKind(str, Enum):
    SIGNUP = "signup"
    SIGNOFF = "signoff"


class EventState(str, Enum):
    OPEN = "open"
    PAST_DEADLINE = "past_deadline"


@dataclass(frozen=True)
class RenderRef:
    """Where the roster message lives, so it can be edited in place."""

    channel_id: str
    message_id: str


@dataclass
class Event:
    """An attendance poll.

    ``signed_up`` and ``signed_off`` keep insertion order and never share a name.
    """

    id: str
    event_date: datetime
    deadline: datetime
    description: str
    title: str | None = None
    signed_up: list[str] = field(default_factory=list)
    signed_off: list[str] = field(default_factory=list)
    render_ref: RenderRef | None = None

    def sign_up(self, participant: str) -> None:
        if participant in self.signed_off:
            self.signed_off.remove(participant)
        if participant not in self.signed_up:
            self.signed_up.append(participant)

    def sign_off(self, participant: str) -> None:
        if participant in self.signed_up:
            self.signed_up.remove(participant)
        if participant not in self.signed_off:
            self.signed_off.append(participant)


@dataclass(frozen=True)
class CreateEventRequest:
    date_text: str
    description: str
    title: str | None = None
    id_hint: str | None = None
    explicit_deadline_minutes: float | None = None
    now: datetime | None = None


@dataclass(frozen=True)
class ActionRequest:
    event_id: str
    action: ActionKind
    participant_name: str
    now: datetime | None = None


@dataclass(frozen=True)
class RenderAttachmentRequest:
    event_id: str
    render_ref: RenderRef


NO_SIGNUPS_TEXT = "No sign-ups"
NO_SIGNOFFS_TEXT = "No sign-offs"


@dataclass(frozen=True)
class RosterView:
    """Everything the presentation layer needs to draw a poll message."""

    event_id: str
    title: str
    description: str
    event_date_text: str
    deadline_text: str
    signed_up_names: tuple[str, ...] = ()
    signed_off_names: tuple[str, ...] = ()

    @property
    def signed_up_header(self) -> str:
        return f"✅ Signed up ({len(self.signed_up_names)})"

    @property
    def signed_off_header(self) -> str:
        return f"❌ Signed off ({len(self.signed_off_names)})"

    @property
    def signed_up_text(self) -> str:
        return "\n".join(self.signed_up_names) or NO_SIGNUPS_TEXT

    @property
    def signed_off_text(self) -> str:
        return "\n".join(self.signed_off_names) or NO_SIGNOFFS_TEXT


@dataclass(frozen=True)
class LateActionNotice:
    """Emitted when someone signs up or off after the registration deadline."""

    participant_name: str
    action: ActionKind
    event_id: str
    event_date_text: str
    occurred_after_deadline: bool = True

    @property
    def text(self) -> str:
        verb = "signed up" if self.action == ActionKind.SIGNUP else "signed off"
        return (
            f"{self.participant_name} {verb} **after the deadline** "
            f"for the event on {self.event_date_text}."
        )


@dataclass(frozen=True)
class CreateEventResult:
    event_id: str
    view: RosterView
    persisted: bool = True


@dataclass(frozen=True)
class ActionResult:
    view: RosterView
    state: EventState
    late_notice: LateActionNotice | None = None
    persisted: bool = True


def button_custom_id(action: ActionKind, event_id: str) -> str:
    """Identifier for a poll button, routed back into an ``ActionRequest``."""
    return f"{action.value}_{event_id}"


def parse_button_custom_id(custom_id: str) -> tuple[ActionKind, str] | None:
    action_text, _, event_id = custom_id.partition("_")
    if not event_id:
        return None
    try:
        action = ActionKind(action_text)
    except ValueError:
        return None
    return action, event_id
