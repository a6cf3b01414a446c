"""Per-kind progress counting for plan execution."""

import logging
from typing import Callable, Dict, Iterable, Optional

from .classifier import summarize
from .models import Action, ActionKind, ProgressEvent

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressEvent], None]

ACTION_LABELS = {
    ActionKind.UPLOAD: "local → remote",
    ActionKind.DOWNLOAD: "remote → local",
    ActionKind.DELETE_LOCAL: "delete local",
    ActionKind.DELETE_REMOTE: "delete remote",
    ActionKind.MERGE: "merge",
}


def format_action(kind: ActionKind) -> str:
    return ACTION_LABELS.get(kind, kind.value.replace("_", " "))


def logging_sink(event: ProgressEvent):
    """Default sink: one INFO line per completed action."""
    logger.info(f"{format_action(event.kind)} {event.completed}/{event.total}")


class ProgressTracker:
    """Counts completed actions per kind against totals taken from the plan.

    Every ``complete`` call emits a ``ProgressEvent`` to the sink. The
    tracker holds no decision logic.
    """

    def __init__(self, plan: Iterable[Action], sink: Optional[ProgressSink] = None):
        self.totals: Dict[ActionKind, int] = summarize(plan)
        self.completed: Dict[ActionKind, int] = {kind: 0 for kind in self.totals}
        self.sink = sink or logging_sink

        for kind, total in self.totals.items():
            logger.debug(f"{format_action(kind)}: {total}")

    @property
    def total(self) -> int:
        return sum(self.totals.values())

    @property
    def done(self) -> int:
        return sum(self.completed.values())

    def complete(self, kind: ActionKind) -> ProgressEvent:
        """Record one finished action and notify the sink."""
        if kind not in self.totals:
            raise ValueError(f"No {kind.value} actions were planned")
        self.completed[kind] += 1
        event = ProgressEvent(kind, self.completed[kind], self.totals[kind])
        self.sink(event)
        return event

    def summary(self) -> str:
        """e.g. ``"local → remote: 3, merge: 1"``."""
        return ", ".join(f"{format_action(kind)}: {count}" for kind, count in self.totals.items())
