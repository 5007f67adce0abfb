from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .engine.data_models import Perspective
from .engine.solver import DOWNHILL_ID, LEG_CONSERVATION_ID, STAMINA_CONTEST_ID

OPEN = -1.0
IGNORED_SKILL_IDS = frozenset({LEG_CONSERVATION_ID, STAMINA_CONTEST_ID})

Interval = List[float]


class SkillIntervalTracker:
    """Turns activation callbacks into per-skill position intervals for one competitor."""

    def __init__(self, course_distance: float) -> None:
        self.course_distance = course_distance
        self.intervals: Dict[str, List[Interval]] = {}
        self.downhill = 0.0
        self._downhill_since: Optional[float] = None

    def activate(self, instance, skill_id: str, perspective: Perspective) -> None:
        if skill_id == DOWNHILL_ID:
            self._downhill_since = instance.elapsed_time
            return
        if not self._tracked(skill_id, perspective):
            return
        self.intervals.setdefault(skill_id, []).append([min(instance.pos, self.course_distance), OPEN])

    def deactivate(self, instance, skill_id: str, perspective: Perspective) -> None:
        if skill_id == DOWNHILL_ID:
            if self._downhill_since is not None:
                self.downhill += instance.elapsed_time - self._downhill_since
                self._downhill_since = None
            return
        if not self._tracked(skill_id, perspective):
            return
        # stacked copies of the same debuff share an id; close the oldest one still open
        record = next((iv for iv in self.intervals.get(skill_id, ()) if iv[1] == OPEN), None)
        # skills with both speed and accel parts report their end twice
        if record is not None:
            record[1] = min(instance.pos, self.course_distance)

    def collect(self, final_time: float) -> Tuple[Dict[str, List[Interval]], float]:
        """Resolve anything still open, hand back the records and reset."""
        for records in self.intervals.values():
            for record in records:
                if record[1] == OPEN:
                    record[1] = self.course_distance
        if self._downhill_since is not None:
            self.downhill += max(0.0, final_time - self._downhill_since)
        intervals, downhill = self.intervals, self.downhill
        self.reset()
        return intervals, downhill

    def reset(self) -> None:
        self.intervals = {}
        self.downhill = 0.0
        self._downhill_since = None

    @staticmethod
    def _tracked(skill_id: str, perspective: Perspective) -> bool:
        return perspective is Perspective.SELF and skill_id not in IGNORED_SKILL_IDS
