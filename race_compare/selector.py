"""
Outcome statistics and representative-run selection.

Keeping every sampled trajectory is too expensive, so only the scalar
outcomes are stored for the whole run. Once ``cutoff`` samples have been
seen, their mean and median serve as estimates and every later sample
competes to be the run closest to each estimate. Memory stays at one
float per sample plus four trajectories.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .engine.telemetry import SampleData


def sample_cutoff(nsamples: int) -> int:
    return max(math.floor(nsamples * 0.8), nsamples - 200)


def median_of(values) -> float:
    return float(np.median(np.asarray(values, dtype=float)))


def mean_of(values) -> float:
    return float(np.mean(np.asarray(values, dtype=float)))


@dataclass
class RunData:
    min_run: Optional[SampleData] = None
    max_run: Optional[SampleData] = None
    mean_run: Optional[SampleData] = None
    median_run: Optional[SampleData] = None

    def to_dict(self) -> Dict[str, Optional[dict]]:
        return {
            "minrun": self.min_run.to_dict() if self.min_run else None,
            "maxrun": self.max_run.to_dict() if self.max_run else None,
            "meanrun": self.mean_run.to_dict() if self.mean_run else None,
            "medianrun": self.median_run.to_dict() if self.median_run else None,
        }


@dataclass
class ComparisonResult:
    results: List[float] = field(default_factory=list)
    run_data: RunData = field(default_factory=RunData)

    def summary(self) -> Dict[str, float]:
        if not self.results:
            return {"mean": 0.0, "median": 0.0, "min": 0.0, "max": 0.0}
        return {
            "mean": mean_of(self.results),
            "median": median_of(self.results),
            "min": float(self.results[0]),
            "max": float(self.results[-1]),
        }

    def to_dict(self) -> Dict[str, object]:
        return {"results": list(self.results), "runData": self.run_data.to_dict()}


class RepresentativeSelector:
    """Accumulates accepted outcomes and keeps the min/max/mean/median runs."""

    def __init__(self, nsamples: int) -> None:
        self.nsamples = nsamples
        self.cutoff = sample_cutoff(nsamples)
        self.outcomes: List[float] = []
        self.run_data = RunData()
        self.min = math.inf
        self.max = -math.inf
        self.est_mean: Optional[float] = None
        self.est_median: Optional[float] = None
        self._best_mean_diff = math.inf
        self._best_median_diff = math.inf

    def add(self, outcome: float, sample: SampleData) -> None:
        index = len(self.outcomes)
        if index == self.cutoff:
            # with nothing accumulated yet the first sample is its own estimate
            basis = self.outcomes if self.outcomes else [outcome]
            self.est_mean = mean_of(basis)
            self.est_median = median_of(basis)
        self.outcomes.append(outcome)

        if outcome < self.min:
            self.min = outcome
            self.run_data.min_run = sample
        if outcome > self.max:
            self.max = outcome
            self.run_data.max_run = sample

        if index >= self.cutoff:
            mean_diff = abs(outcome - self.est_mean)
            median_diff = abs(outcome - self.est_median)
            if mean_diff < self._best_mean_diff:
                self._best_mean_diff = mean_diff
                self.run_data.mean_run = sample
            if median_diff < self._best_median_diff:
                self._best_median_diff = median_diff
                self.run_data.median_run = sample

    def finish(self) -> ComparisonResult:
        ordered = np.sort(np.asarray(self.outcomes, dtype=float))
        return ComparisonResult(results=ordered.tolist(), run_data=self.run_data)
