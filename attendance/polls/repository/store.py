"""In-memory event collection backed by a JSON snapshot file."""

import logging
import os
import tempfile
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from attendance.polls.dtos import (
    DeadlineAfterEventError,
    Event,
    EventAlreadyExistsError,
    PersistenceError,
    RenderRef,
)
from attendance.polls.repository.snapshot import EventRecord, Snapshot

logger = logging.getLogger(__name__)


class EventStore:
    """Owns every Event for the lifetime of the process.

    The in-memory collection is the source of truth; ``persist`` writes the whole
    collection to ``snapshot_path`` by writing a temporary file next to it and
    renaming it into place, so a failed write never damages the previous snapshot.
    """

    def __init__(self, snapshot_path: Path | str) -> None:
        self.snapshot_path = Path(snapshot_path)
        self._events: dict[str, Event] = {}

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events.values())

    def create(
        self,
        event_id: str,
        event_date: datetime,
        deadline: datetime,
        description: str,
        title: str | None = None,
    ) -> Event:
        if deadline >= event_date:
            raise DeadlineAfterEventError(deadline=deadline, event_date=event_date)
        if event_id in self._events:
            raise EventAlreadyExistsError(event_id)

        event = Event(
            id=event_id,
            event_date=event_date,
            deadline=deadline,
            description=description,
            title=title,
        )
        self._events[event_id] = event
        return event

    def get(self, event_id: str) -> Event | None:
        return self._events.get(event_id)

    def attach_render_ref(self, event_id: str, ref: RenderRef) -> Event | None:
        event = self._events.get(event_id)
        if event is None:
            return None
        event.render_ref = ref
        return event

    def to_snapshot(self) -> Snapshot:
        return Snapshot(
            root={event_id: EventRecord.from_event(event) for event_id, event in self._events.items()}
        )

    def dump(self) -> str:
        return self.to_snapshot().model_dump_json(by_alias=True, indent=2)

    def persist(self) -> None:
        """Write the full collection to disk. Raises ``PersistenceError``."""
        payload = self.dump()
        directory = self.snapshot_path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self.snapshot_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.snapshot_path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(self.snapshot_path, str(e)) from e
        logger.debug("Persisted %d event(s) to %s", len(self._events), self.snapshot_path)

    def load_on_startup(self) -> None:
        """Load the snapshot, or start empty if it is missing or unreadable.

        A missing snapshot is created empty. An unreadable one is moved aside so the
        next ``persist`` does not overwrite what may still be recoverable by hand.
        """
        self._events = {}

        if not self.snapshot_path.exists():
            logger.info("No snapshot at %s, starting with an empty store", self.snapshot_path)
            try:
                self.persist()
            except PersistenceError:
                logger.exception("Could not initialize snapshot at %s", self.snapshot_path)
            return

        try:
            snapshot = Snapshot.model_validate_json(self.snapshot_path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.error("Snapshot at %s is unreadable, starting empty: %s", self.snapshot_path, e)
            self._move_aside()
            return

        self.restore(snapshot)
        logger.info("Loaded %d event(s) from %s", len(self._events), self.snapshot_path)

    def restore(self, snapshot: Snapshot) -> None:
        """Replace the in-memory collection with the events of ``snapshot``."""
        self._events = {
            event_id: record.to_event(event_id) for event_id, record in snapshot.root.items()
        }

    def _move_aside(self) -> None:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
        target = self.snapshot_path.with_name(f"{self.snapshot_path.name}.corrupt-{stamp}")
        try:
            os.replace(self.snapshot_path, target)
            logger.warning("Moved unreadable snapshot to %s", target)
        except OSError as e:
            logger.error("Could not move unreadable snapshot aside: %s", e)
