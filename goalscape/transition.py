"""
Animated importance transitions for renderers.

A transition interpolates a sibling set from its previous importances to the
new ones with a sine ease-in-out curve. It never decides the converged
values: the last frame is the allocator's integer target, verbatim.

Transitions are driven from outside, either by polling against a clock
(`poll` / `sample`) or by iterating fixed frame steps. A TransitionBoard keeps
one live transition per sibling set and cancels the old one when a newer
target arrives, so a stale animation can never overwrite a newer target.
"""
import math
import time
from typing import Callable, Dict, Iterator, List, Optional

from goalscape.logger import get_logger

logger = get_logger("transition")

Snapshot = Dict[str, float]


def ease_in_out(t: float) -> float:
    """Sine ease-in-out on [0, 1]."""
    t = min(max(t, 0.0), 1.0)
    return 0.5 - math.cos(math.pi * t) / 2.0


class ImportanceTransition:
    """One cancellable interpolation between two importance snapshots."""

    def __init__(
        self,
        parent_id: str,
        start: Snapshot,
        target: Dict[str, int],
        duration_ms: int,
        frame_ms: int,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.parent_id = parent_id
        self.target = dict(target)
        # Ids that just joined the set grow from 0; ids that left are dropped
        self.start = {node_id: float(start.get(node_id, 0)) for node_id in self.target}
        self.duration_ms = max(0, int(duration_ms))
        self.frame_ms = max(1, int(frame_ms))
        self._clock = clock or time.monotonic
        self.started_at = self._clock()
        self.cancelled = False
        self.last_frame: Snapshot = dict(self.start)
        self._finished = self.duration_ms == 0

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def active(self) -> bool:
        return not (self.cancelled or self._finished)

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            logger.debug(f"Transition for {self.parent_id} cancelled")

    def sample(self, elapsed_ms: float) -> Optional[Snapshot]:
        """
        Snapshot at `elapsed_ms` after the start.

        Returns None once the transition is cancelled.
        """
        if self.cancelled:
            return None
        if self.duration_ms == 0 or elapsed_ms >= self.duration_ms:
            self._finished = True
            frame: Snapshot = {k: v for k, v in self.target.items()}
        else:
            eased = ease_in_out(elapsed_ms / self.duration_ms)
            frame = {
                node_id: self.start[node_id] + (end - self.start[node_id]) * eased
                for node_id, end in self.target.items()
            }
        self.last_frame = frame
        return dict(frame)

    def poll(self) -> Optional[Snapshot]:
        """Snapshot for the current clock reading."""
        elapsed_ms = (self._clock() - self.started_at) * 1000.0
        return self.sample(elapsed_ms)

    def frames(self) -> Iterator[Snapshot]:
        """Fixed-step frames ending on the exact target."""
        steps = max(1, math.ceil(self.duration_ms / self.frame_ms))
        for step in range(1, steps + 1):
            if self.cancelled:
                return
            frame = self.sample(min(step * self.frame_ms, self.duration_ms))
            if frame is None:
                return
            yield frame

    def __iter__(self) -> Iterator[Snapshot]:
        return self.frames()


class TransitionBoard:
    """Live transitions keyed by the parent id of their sibling set."""

    def __init__(self, duration_ms: int, frame_ms: int, clock: Optional[Callable[[], float]] = None):
        self.duration_ms = duration_ms
        self.frame_ms = frame_ms
        self.clock = clock
        self._live: Dict[str, ImportanceTransition] = {}

    def begin(
        self, parent_id: str, before: Dict[str, int], after: Dict[str, int]
    ) -> ImportanceTransition:
        """Start a transition, superseding any in-flight one for the same set."""
        start: Snapshot = {k: float(v) for k, v in before.items()}
        previous = self._live.get(parent_id)
        if previous is not None and not previous.cancelled:
            # Continue from what is on screen right now
            frame = previous.poll()
            if frame is not None and not previous.finished:
                start = frame
            previous.cancel()

        transition = ImportanceTransition(
            parent_id, start, after, self.duration_ms, self.frame_ms, clock=self.clock
        )
        self._live[parent_id] = transition
        return transition

    def get(self, parent_id: str) -> Optional[ImportanceTransition]:
        return self._live.get(parent_id)

    def live(self) -> List[ImportanceTransition]:
        return [t for t in self._live.values() if t.active]

    def discard(self, parent_ids: List[str]) -> None:
        """Cancel and forget transitions of sibling sets that no longer exist."""
        for parent_id in parent_ids:
            transition = self._live.pop(parent_id, None)
            if transition is not None:
                transition.cancel()
