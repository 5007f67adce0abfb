from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

Interval = List[float]


def instance_speed(instance) -> float:
    """Displayed speed: base current speed plus the correction terms."""
    modifiers = instance.speed_modifiers
    return instance.current_speed + (modifiers.acc + modifiers.err)


@dataclass
class CompetitorTrajectory:
    """Co-indexed per-step series for one competitor in one sample."""

    time: List[float] = field(default_factory=list)
    position: List[float] = field(default_factory=list)
    speed: List[float] = field(default_factory=list)
    hp: List[float] = field(default_factory=list)
    start_delay: float = 0.0
    downhill: float = 0.0
    skills: Dict[str, List[Interval]] = field(default_factory=dict)

    def record(self, instance) -> None:
        self.time.append(instance.elapsed_time)
        self.position.append(instance.pos)
        self.speed.append(instance_speed(instance))
        self.hp.append(instance.hp)

    def __len__(self) -> int:
        return len(self.time)

    @property
    def final_time(self) -> float:
        return self.time[-1] if self.time else 0.0


@dataclass
class SampleData:
    """Both competitors' trajectories; slot 0 is the first competitor."""

    runs: Tuple[CompetitorTrajectory, CompetitorTrajectory] = field(
        default_factory=lambda: (CompetitorTrajectory(), CompetitorTrajectory())
    )

    def __getitem__(self, slot: int) -> CompetitorTrajectory:
        return self.runs[slot]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "t": [run.time for run in self.runs],
            "p": [run.position for run in self.runs],
            "v": [run.speed for run in self.runs],
            "hp": [run.hp for run in self.runs],
            "sk": [{skill_id: [list(iv) for iv in ivs] for skill_id, ivs in run.skills.items()} for run in self.runs],
            "sdly": [run.start_delay for run in self.runs],
            "dh": [run.downhill for run in self.runs],
        }
