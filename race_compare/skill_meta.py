from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Tuple


def _default_catalog_path() -> Path:
    return Path(__file__).resolve().parent / "data" / "skill_meta.json"


@dataclass(frozen=True)
class SkillEffect:
    """Effect data consumed by the reference solver."""

    speed: float = 0.0
    accel: float = 0.0
    current_speed: float = 0.0
    heal: float = 0.0
    duration: float = 0.0
    target: str = "self"
    window: Tuple[float, float] = (0.0, 1.0)

    @property
    def targets_other(self) -> bool:
        return self.target == "other"


@dataclass(frozen=True)
class SkillMeta:
    skill_id: str
    group_id: str
    name: str
    rarity: int = 1
    effect: SkillEffect = SkillEffect()


class SkillCatalog:
    """Loads and caches skill metadata keyed by skill id."""

    def __init__(self, entries: Optional[Mapping[str, SkillMeta]] = None, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path else _default_catalog_path()
        self._entries: Dict[str, SkillMeta] = dict(entries) if entries is not None else self._load(self.path)

    @staticmethod
    def _load(path: Path) -> Dict[str, SkillMeta]:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return {skill_id: _parse_entry(skill_id, payload) for skill_id, payload in raw.items()}

    @classmethod
    def from_groups(cls, groups: Mapping[str, str]) -> "SkillCatalog":
        """Catalog carrying only group ids, enough for roll ordering."""
        return cls({skill_id: SkillMeta(skill_id, group_id, skill_id) for skill_id, group_id in groups.items()})

    def get(self, skill_id: str) -> SkillMeta:
        try:
            return self._entries[skill_id]
        except KeyError:
            raise KeyError(f"Skill '{skill_id}' not found in catalog {self.path}") from None

    def group_id(self, skill_id: str) -> str:
        return self.get(skill_id).group_id

    def __contains__(self, skill_id: object) -> bool:
        return skill_id in self._entries

    def skill_ids(self) -> Iterable[str]:
        return list(self._entries)

    def group_members(self, group_id: str) -> Tuple[str, ...]:
        return tuple(sorted((m.skill_id for m in self._entries.values() if m.group_id == group_id), key=int))


def _parse_entry(skill_id: str, payload: Mapping) -> SkillMeta:
    effect = payload.get("effect", {})
    window = effect.get("window", (0.0, 1.0))
    return SkillMeta(
        skill_id=skill_id,
        group_id=str(payload["groupId"]),
        name=payload.get("name", skill_id),
        rarity=int(payload.get("rarity", 1)),
        effect=SkillEffect(
            speed=float(effect.get("speed", 0.0)),
            accel=float(effect.get("accel", 0.0)),
            current_speed=float(effect.get("currentSpeed", 0.0)),
            heal=float(effect.get("heal", 0.0)),
            duration=float(effect.get("duration", 0.0)),
            target=effect.get("target", "self"),
            window=(float(window[0]), float(window[1])),
        ),
    )


_DEFAULT_CATALOG: Optional[SkillCatalog] = None


def default_catalog() -> SkillCatalog:
    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        _DEFAULT_CATALOG = SkillCatalog()
    return _DEFAULT_CATALOG
