"""Signed distances for fields that are not exact distance functions."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ._common import _F, as_points, length
from .fields import DEFAULT_GRADIENT_STEP, Accuracy, Field, Projection
from .projection import DEFAULT_PROJECTION, ProjectionConfig, closest_points


def signed_distance(point, field: Field, config: Optional[ProjectionConfig] = None):
    """Signed Euclidean distance from *point* to the surface of *field*.

    Exact fields answer directly.  Otherwise the sign comes from the field
    value (negative inside) and the magnitude from the distance to the
    projected surface point: the closed-form :meth:`Field.project` for
    ``Projection.ANALYTIC`` fields, the Newton projector for the rest.
    """
    p = as_points(point)
    if field.accuracy is Accuracy.EXACT:
        return field.eval(p)

    value = np.asarray(field.eval(p))
    if field.projection is Projection.ANALYTIC:
        surface = field.project(p)
    else:
        surface = closest_points(p, field, config or DEFAULT_PROJECTION).point
    dist = length(p - surface)
    signed = np.where(value < 0.0, -dist, dist)
    return float(signed) if p.ndim == 1 else signed


def approximate_distance(point, field: Field, h: float = DEFAULT_GRADIENT_STEP):
    """Tangent-plane distance estimate ``0.5 * value / |grad|``.

    Only meaningful close to the surface; the error grows with distance.
    Where the gradient vanishes the estimate is 0.
    """
    p = as_points(point)
    value, grad = field.eval_with_gradient(p, h)
    glen = length(grad)
    est = np.where(glen < 1e-9, 0.0, 0.5 * np.asarray(value) / np.where(glen < 1e-9, 1.0, glen))
    return float(est) if p.ndim == 1 else est


def exact_closest_point(point, field: Field) -> _F:
    """Closed-form nearest surface point for ``Projection.ANALYTIC`` fields."""
    if field.projection is not Projection.ANALYTIC:
        raise TypeError(
            f"{type(field).__name__} has no analytic projection; use closest_point instead"
        )
    return field.project(point)
