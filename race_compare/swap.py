from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Tuple

from .config import body_length


class Role(Enum):
    """Which competitor's stream is stepped to the finish first."""

    A_LEADS = 0
    B_LEADS = 1

    @property
    def leader_slot(self) -> int:
        return 0 if self is Role.A_LEADS else 1

    @property
    def follower_slot(self) -> int:
        return 1 - self.leader_slot

    def swapped(self) -> "Role":
        return Role.B_LEADS if self is Role.A_LEADS else Role.A_LEADS


class SwapController:
    """
    Validates each attempt and swaps roles when the measurement is biased.

    The leader is stepped until it crosses the finish and the follower is
    measured at that instant. If the follower is already further along (or
    its position is undefined) the leader finished late and overshot the
    line, so the lengths would be overestimated. The roles are reversed,
    the sign flipped and the same sample replayed. The role assignment
    sticks for later samples until the next anomaly.
    """

    def __init__(self, body_length_units: Optional[float] = None) -> None:
        self.role = Role.B_LEADS
        self.sign = 1
        self.retry = False
        self.swaps = 0
        self.body_length = body_length_units if body_length_units is not None else body_length()

    @staticmethod
    def is_valid(leader_final: float, follower_align: float) -> bool:
        if math.isnan(follower_align):
            return False
        return leader_final >= follower_align

    def accept(self, leader_final: float, follower_align: float) -> bool:
        if self.is_valid(leader_final, follower_align):
            self.retry = False
            return True
        self.role = self.role.swapped()
        self.sign = -self.sign
        self.retry = True
        self.swaps += 1
        return False

    def outcome(self, leader_final: float, follower_align: float) -> float:
        """Signed lengths; positive means the second competitor finished ahead."""
        return self.sign * (leader_final - follower_align) / self.body_length

    def slots(self) -> Tuple[int, int]:
        return self.role.leader_slot, self.role.follower_slot
