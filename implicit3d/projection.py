"""Iterative closest-point projection onto a field's zero set.

Each step is a damped Newton update ``p -= grad * (value / |grad|^2) * damping``.
The damping and the iteration cap were tuned by eye for line tracing; no
convergence is guaranteed, so results carry a ``converged`` flag instead of
raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

import numpy as np

from ._common import _F, as_points, dot2
from .errors import FieldConfigError
from .fields import DEFAULT_GRADIENT_STEP, Field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionConfig:
    """Knobs of the Newton projector.

    Attributes
    ----------
    max_iterations:
        Update budget per point.
    offset:
        Added to the field value, so the target is the ``-offset`` level set.
    damping:
        Fraction of the full Newton step taken each iteration.
    epsilon:
        ``|value + offset|`` below which a point counts as converged.
    gradient_epsilon:
        ``|grad|^2`` below which the gradient is treated as vanishing.
    nudge:
        X step taken instead of a Newton update on a vanishing gradient.
    origin_tolerance, origin_perturbation:
        Starting points this close to the origin have x replaced by
        ``origin_perturbation`` first.
    gradient_step:
        Central-difference step for fields without an analytic gradient.
    """

    max_iterations: int = 8
    offset: float = 0.0
    damping: float = 0.8
    epsilon: float = 1e-6
    gradient_epsilon: float = 1e-9
    nudge: float = 0.01
    origin_tolerance: float = 1e-9
    origin_perturbation: float = 0.1
    gradient_step: float = DEFAULT_GRADIENT_STEP

    def __post_init__(self) -> None:
        if int(self.max_iterations) != self.max_iterations or self.max_iterations < 0:
            raise FieldConfigError(
                f"max_iterations must be a non-negative integer, got {self.max_iterations!r}"
            )
        if not np.isfinite(self.offset):
            raise FieldConfigError(f"offset must be finite, got {self.offset!r}")
        for name in ("damping", "epsilon", "gradient_epsilon", "gradient_step"):
            if not getattr(self, name) > 0.0:
                raise FieldConfigError(f"{name} must be positive, got {getattr(self, name)!r}")
        if self.nudge == 0.0 or self.origin_perturbation == 0.0:
            raise FieldConfigError("nudge and origin_perturbation must be non-zero")


@dataclass(frozen=True)
class ProjectionResult:
    """A projected point with its iteration count and convergence flag.

    :func:`closest_point` fills this with a ``(3,)`` point, an ``int`` and a
    ``bool``; :func:`closest_points` with arrays over the batch.
    """

    point: _F
    iterations: Union[int, np.ndarray]
    converged: Union[bool, np.ndarray]


DEFAULT_PROJECTION = ProjectionConfig()


def closest_points(points, field: Field, config: ProjectionConfig = DEFAULT_PROJECTION) -> ProjectionResult:
    """Project a ``(..., 3)`` batch of points onto the zero set of *field*.

    Points retire as soon as they converge.  At most
    ``config.max_iterations`` updates are applied to any point, followed by
    one last evaluation to set its ``converged`` flag.
    """
    p = as_points(points)
    shape = p.shape
    p = p.reshape(-1, 3)
    n = len(p)

    at_origin = np.all(np.abs(p) < config.origin_tolerance, axis=-1)
    if at_origin.any():
        logger.debug("perturbing %d start point(s) at the origin", int(at_origin.sum()))
        p[at_origin, 0] = config.origin_perturbation

    iterations = np.zeros(n, dtype=int)
    converged = np.zeros(n, dtype=bool)
    active = np.ones(n, dtype=bool)

    for i in range(config.max_iterations + 1):
        idx = np.flatnonzero(active)
        if idx.size == 0:
            break
        val, grad = field.eval_with_gradient(p[idx], config.gradient_step)
        val = np.asarray(val) + config.offset

        done = np.abs(val) < config.epsilon
        converged[idx[done]] = True
        active[idx[done]] = False
        if i == config.max_iterations:
            break

        moving = ~done
        idx, val, grad = idx[moving], val[moving], grad[moving]
        g2 = dot2(grad)
        flat = g2 < config.gradient_epsilon
        if flat.any():
            logger.debug("vanishing gradient at %d point(s); nudging along x", int(flat.sum()))
            p[idx[flat], 0] += config.nudge
        steep = ~flat
        step = val[steep] / g2[steep] * config.damping
        p[idx[steep]] -= grad[steep] * step[:, None]
        iterations[idx] += 1

    if not converged.all():
        logger.debug(
            "%d of %d point(s) did not converge in %d iterations",
            int((~converged).sum()), n, config.max_iterations,
        )
    return ProjectionResult(
        p.reshape(shape),
        iterations.reshape(shape[:-1]),
        converged.reshape(shape[:-1]),
    )


def closest_point(point, field: Field, config: ProjectionConfig = DEFAULT_PROJECTION) -> ProjectionResult:
    """Project a single point onto the zero set of *field*.

    Never raises on non-convergence: the last iterate is returned with
    ``converged=False``.
    """
    p = as_points(point)
    if p.shape != (3,):
        raise ValueError(f"closest_point takes one (3,) point, got shape {p.shape}; use closest_points")
    res = closest_points(p[None], field, config)
    return ProjectionResult(res.point[0], int(res.iterations[0]), bool(res.converged[0]))
