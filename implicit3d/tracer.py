"""Sphere tracing through implicit3d fields.

The field value at the current ray point is used directly as the next
step.  That is only safe for fields tagged ``Accuracy.EXACT``; approximate
fields are traced the same way and may step past thin or sharply curved
features.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

import numpy as np

from ._common import _F, as_points
from .errors import FieldConfigError
from .fields import Field

logger = logging.getLogger(__name__)

Disposition = Literal["hit", "miss", "exhausted"]


@dataclass(frozen=True)
class MarchConfig:
    """Sphere-tracing limits.

    Attributes
    ----------
    epsilon:
        Surface threshold and initial offset along the ray.
    max_steps:
        Step budget per ray.
    max_distance:
        Travel distance beyond which a ray counts as a miss.
    """

    epsilon: float = 1e-3
    max_steps: int = 100
    max_distance: float = 100.0

    def __post_init__(self) -> None:
        if not self.epsilon > 0.0:
            raise FieldConfigError(f"epsilon must be positive, got {self.epsilon!r}")
        if int(self.max_steps) != self.max_steps or self.max_steps < 1:
            raise FieldConfigError(f"max_steps must be a positive integer, got {self.max_steps!r}")
        if not self.max_distance > 0.0:
            raise FieldConfigError(f"max_distance must be positive, got {self.max_distance!r}")


@dataclass(frozen=True)
class RayHit:
    """Outcome of tracing one ray.

    ``point`` is always ``origin + direction * distance``, whatever the
    disposition.
    """

    distance: float
    point: _F
    disposition: Disposition
    steps: int

    @property
    def hit(self) -> bool:
        return self.disposition == "hit"


@dataclass(frozen=True)
class RayBatch:
    """Outcome of :func:`march_batch`; every member is indexed by ray."""

    distance: _F
    point: _F
    disposition: np.ndarray
    steps: np.ndarray

    @property
    def hit(self) -> np.ndarray:
        return self.disposition == "hit"

    def __len__(self) -> int:
        return len(self.distance)

    def __getitem__(self, i: int) -> RayHit:
        return RayHit(
            float(self.distance[i]),
            self.point[i].copy(),
            str(self.disposition[i]),
            int(self.steps[i]),
        )


DEFAULT_MARCH = MarchConfig()


def march(origin, direction, field: Field, config: MarchConfig = DEFAULT_MARCH) -> RayHit:
    """Trace one ray from *origin* along the unit vector *direction*.

    Marching starts ``config.epsilon`` along the ray.  At each step the ray
    reports a hit when the field drops below ``epsilon``, a miss once the
    travelled distance reaches ``max_distance``, and otherwise advances by
    the field value.  Running out of steps yields ``"exhausted"``.

    *direction* is not normalised here.  A zero direction is traced as is:
    the ray stays at *origin*.
    """
    ro = as_points(origin)
    rd = as_points(direction)
    if not np.any(rd):
        logger.debug("zero-length ray direction from %s; the ray cannot advance", ro)

    eps = config.epsilon
    t = eps
    for step in range(1, config.max_steps + 1):
        point = ro + rd * t
        d = field.eval(point)
        if d < eps:
            return RayHit(t, point, "hit", step)
        if t >= config.max_distance:
            return RayHit(t, point, "miss", step)
        t += d

    logger.debug("ray from %s exhausted %d steps at t=%g", ro, config.max_steps, t)
    return RayHit(t, ro + rd * t, "exhausted", config.max_steps)


def march_batch(origins, directions, field: Field, config: MarchConfig = DEFAULT_MARCH) -> RayBatch:
    """Trace many rays at once.

    *origins* and *directions* are ``(N, 3)`` arrays (either may be a single
    ``(3,)`` vector, broadcast against the other).  Each ray follows the
    same rules as :func:`march` and retires independently.
    """
    ro, rd = np.broadcast_arrays(as_points(origins), as_points(directions))
    ro = ro.reshape(-1, 3).copy()
    rd = rd.reshape(-1, 3).copy()
    n = len(ro)

    eps = config.epsilon
    t = np.full(n, eps)
    steps = np.zeros(n, dtype=int)
    disposition = np.full(n, "exhausted", dtype="<U9")
    active = np.ones(n, dtype=bool)

    for step in range(1, config.max_steps + 1):
        idx = np.flatnonzero(active)
        if idx.size == 0:
            break
        d = np.asarray(field.eval(ro[idx] + rd[idx] * t[idx, None]))
        steps[idx] = step
        hit = d < eps
        miss = ~hit & (t[idx] >= config.max_distance)
        disposition[idx[hit]] = "hit"
        disposition[idx[miss]] = "miss"
        done = hit | miss
        active[idx[done]] = False
        t[idx[~done]] += d[~done]

    if active.any():
        logger.debug("%d of %d rays exhausted %d steps", int(active.sum()), n, config.max_steps)
    return RayBatch(t, ro + rd * t[:, None], disposition, steps)
