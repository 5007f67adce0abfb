from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, Optional

from .data_models import Course, CourseSlope


def _default_course_file() -> Path:
    return Path(__file__).resolve().parents[1] / "data" / "courses.json"


def slope_gradient_at(course: Course, position: float) -> float:
    """
    Returns slope gradient (%) for the given 1D position.

    Courses that do not define slopes simply return 0.
    """
    if not course.slopes:
        return 0.0

    for slope in course.slopes:
        if slope.start_pos <= position <= slope.end_pos:
            return slope.gradient
    return 0.0


def section_length(course: Course, sections: int = 24) -> float:
    if course.distance <= 0 or sections <= 0:
        return 0.0
    return course.distance / sections


class CourseRegistry:
    """Loads and caches course definitions from a JSON file."""

    def __init__(self, course_file: Optional[Path] = None) -> None:
        self.course_file = Path(course_file) if course_file else _default_course_file()
        self._cache: Dict[int, Course] = {}
        self._raw: Dict[int, dict] = {}
        self._index_file()

    def _index_file(self) -> None:
        if not self.course_file.exists():
            return
        with open(self.course_file, "r", encoding="utf-8") as f:
            raw = json.load(f)
        self._raw = {int(course_id): payload for course_id, payload in raw.items()}

    def load(self, course_id: int) -> Course:
        key = int(course_id)
        if key in self._cache:
            return self._cache[key]

        payload = self._raw.get(key)
        if payload is None:
            raise KeyError(f"Course '{course_id}' not found in {self.course_file}")

        course = Course(
            course_id=key,
            name=payload.get("name", str(key)),
            distance=float(payload["distance"]),
            surface=payload.get("surface", "turf"),
            slopes=tuple(
                CourseSlope(start_pos=float(s["start"]), length=float(s["length"]), gradient=float(s["gradient"]))
                for s in payload.get("slopes", ())
            ),
        )
        self._cache[key] = course
        return course

    def list_courses(self) -> Iterable[int]:
        return sorted(self._raw)


DEFAULT_COURSE_REGISTRY = CourseRegistry()
