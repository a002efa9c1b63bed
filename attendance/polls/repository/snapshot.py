"""On-disk snapshot schema. Field names are the durable contract."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

from attendance.polls.dtos import Event, RenderRef


class MessageRefRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    channel_id: str = Field(alias="channelId")
    message_id: str = Field(alias="messageId")


class EventRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: datetime
    deadline: datetime
    description: str
    title: str | None = None
    signed_up: list[str] = Field(default_factory=list, alias="signedUp")
    signed_off: list[str] = Field(default_factory=list, alias="signedOff")
    message_ref: MessageRefRecord | None = Field(default=None, alias="messageRef")

    @field_validator("date", "deadline")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @classmethod
    def from_event(cls, event: Event) -> "EventRecord":
        message_ref = None
        if event.render_ref is not None:
            message_ref = MessageRefRecord(
                channel_id=event.render_ref.channel_id,
                message_id=event.render_ref.message_id,
            )
        return cls(
            date=event.event_date,
            deadline=event.deadline,
            description=event.description,
            title=event.title,
            signed_up=list(event.signed_up),
            signed_off=list(event.signed_off),
            message_ref=message_ref,
        )

    def to_event(self, event_id: str) -> Event:
        render_ref = None
        if self.message_ref is not None:
            render_ref = RenderRef(
                channel_id=self.message_ref.channel_id,
                message_id=self.message_ref.message_id,
            )
        # A hand-edited file may list a name twice or in both sections
        signed_up = list(dict.fromkeys(self.signed_up))
        signed_off = [name for name in dict.fromkeys(self.signed_off) if name not in signed_up]
        return Event(
            id=event_id,
            event_date=self.date,
            deadline=self.deadline,
            description=self.description,
            title=self.title,
            signed_up=signed_up,
            signed_off=signed_off,
            render_ref=render_ref,
        )


class Snapshot(RootModel[dict[str, EventRecord]]):
    root: dict[str, EventRecord] = {}
