"""Habit list with auto-persist and a once-per-day completion reset."""

import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from app_utils.storage import StorageError

logger = logging.getLogger(__name__)

SAVE_KEY = "SavedHabits"
LAST_RESET_KEY = "LastResetDate"

DEFAULT_HABITS = [
    "Drink Water",
    "Exercise",
    "Read",
]


@dataclass(frozen=True)
class Habit:
    name: str
    is_completed: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_dict(self) -> dict:
        return {"id": str(self.id), "name": self.name, "isCompleted": self.is_completed}

    @classmethod
    def from_dict(cls, raw: dict) -> "Habit":
        if not isinstance(raw, dict):
            raise ValueError(f"habit entry must be an object, got {type(raw).__name__}")
        habit_id, name, done = raw["id"], raw["name"], raw["isCompleted"]
        if not (isinstance(habit_id, str) and isinstance(name, str) and isinstance(done, bool)):
            raise ValueError(f"bad habit entry: {raw!r}")
        return cls(name=name, is_completed=done, id=uuid.UUID(habit_id))


def default_habits() -> List[Habit]:
    return [Habit(name=name) for name in DEFAULT_HABITS]


def encode_habits(habits: Iterable[Habit]) -> bytes:
    return json.dumps([h.to_dict() for h in habits]).encode("utf-8")


def decode_habits(data: bytes) -> List[Habit]:
    """Parse a stored habit list.

    Raises ValueError (or one of its subclasses) when the payload is not a JSON
    list of well-formed habits with distinct ids.
    """
    try:
        raw = json.loads(data.decode("utf-8"))
    except RecursionError as exc:
        raise ValueError("stored habits are nested too deeply") from exc
    if not isinstance(raw, list):
        raise ValueError("stored habits must be a list")
    try:
        habits = [Habit.from_dict(item) for item in raw]
    except (KeyError, TypeError) as exc:
        raise ValueError(f"bad habit entry: {exc}") from exc
    if len({h.id for h in habits}) != len(habits):
        raise ValueError("duplicate habit ids")
    return habits


def encode_timestamp(moment: datetime) -> bytes:
    return moment.isoformat().encode("utf-8")


def decode_timestamp(data: bytes) -> datetime:
    return datetime.fromisoformat(data.decode("utf-8"))


def local_now() -> datetime:
    return datetime.now().astimezone()


def habit_score(completed: Dict[str, bool]) -> float:
    # completed: {"Drink Water": True, ...}
    if not completed:
        return 0.0
    total = len(completed)
    done = sum(1 for v in completed.values() if v)
    return done / max(1, total)


Listener = Callable[[Tuple[Habit, ...]], None]


class HabitStore:
    """Ordered habit list mirrored to a key-value store on every change.

    ``storage`` needs ``get(key) -> bytes | None`` and ``set(key, bytes)``.
    ``clock`` returns the current time; its timezone defines the calendar day
    used by the daily reset. Construction loads the saved list (falling back
    to DEFAULT_HABITS) and then runs :meth:`check_and_reset_for_new_day`.

    None of the public methods raise on storage or encoding problems: those
    are logged and the in-memory list stays authoritative.
    """

    def __init__(self, storage, clock: Optional[Callable[[], datetime]] = None):
        self.storage = storage
        self.clock = clock or local_now
        self._habits: List[Habit] = self._load_habits()
        self._listeners: List[Listener] = []
        self.reset_on_startup = self.check_and_reset_for_new_day()

    # -- read side ---------------------------------------------------------

    @property
    def habits(self) -> Tuple[Habit, ...]:
        return tuple(self._habits)

    def __len__(self):
        return len(self._habits)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(habits)`` after every change; returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- operations --------------------------------------------------------

    def toggle_habit(self, habit_id: uuid.UUID) -> None:
        for i, habit in enumerate(self._habits):
            if habit.id == habit_id:
                self._habits[i] = replace(habit, is_completed=not habit.is_completed)
                logger.debug("toggled %r -> %s", habit.name, not habit.is_completed)
                self._changed()
                return
        logger.debug("toggle ignored, no habit with id %s", habit_id)

    def add_habit(self, name: str) -> Habit:
        habit = Habit(name=name)
        self._habits.append(habit)
        logger.debug("added %r", name)
        self._changed()
        return habit

    def delete_habit(self, positions: Iterable[int]) -> None:
        doomed = {p for p in positions if 0 <= p < len(self._habits)}
        self._habits = [h for i, h in enumerate(self._habits) if i not in doomed]
        logger.debug("deleted positions %s", sorted(doomed))
        self._changed()

    def reset_habits(self) -> None:
        self._habits = [replace(h, is_completed=False) for h in self._habits]
        self._changed()
        self._save_last_reset(self.clock())
        logger.info("reset %d habits", len(self._habits))

    def check_and_reset_for_new_day(self) -> bool:
        """Reset completion flags if the last reset was on an earlier day.

        Runs once from the constructor. Returns True when a reset happened.
        A missing or unreadable marker counts as a first run: the marker is
        written and nothing is reset.
        """
        now = self.clock()
        last = self._load_last_reset()
        if last is None:
            self._save_last_reset(now)
            return False
        last_day = self._local_day(last, now)
        if last_day < now.date():
            logger.info("new day since %s, clearing completions", last_day)
            self.reset_habits()
            return True
        return False

    def _local_day(self, moment: datetime, now: datetime) -> date:
        # the default clock only carries today's UTC offset; astimezone() with
        # no argument applies the system zone rules in force at ``moment``
        if moment.tzinfo is None or now.tzinfo is None:
            return moment.date()
        if self.clock is local_now:
            return moment.astimezone().date()
        return moment.astimezone(now.tzinfo).date()

    # -- persistence -------------------------------------------------------

    def _changed(self):
        self._save_habits()
        snapshot = self.habits
        for listener in list(self._listeners):
            listener(snapshot)

    def _load_habits(self) -> List[Habit]:
        try:
            data = self.storage.get(SAVE_KEY)
            if data is None:
                logger.info("no saved habits, starting with defaults")
                return default_habits()
            return decode_habits(data)
        except (StorageError, ValueError) as exc:
            logger.warning("could not load saved habits (%s), using defaults", exc)
            return default_habits()

    def _save_habits(self):
        try:
            self.storage.set(SAVE_KEY, encode_habits(self._habits))
        except (StorageError, TypeError, ValueError):
            logger.exception("could not save habits, stored copy is stale")

    def _load_last_reset(self) -> Optional[datetime]:
        try:
            data = self.storage.get(LAST_RESET_KEY)
            if data is None:
                return None
            return decode_timestamp(data)
        except (StorageError, ValueError) as exc:
            logger.warning("unreadable last reset date (%s), treating as first run", exc)
            return None

    def _save_last_reset(self, moment: datetime):
        try:
            self.storage.set(LAST_RESET_KEY, encode_timestamp(moment))
        except StorageError:
            logger.exception("could not save last reset date")
