"""Grid sampling of fields for downstream surface extraction."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from ._common import _F
from .errors import FieldConfigError
from .fields import Field

_Bounds3D = Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float]]
_Resolution3D = Tuple[int, int, int]


def grid_points(bounds: _Bounds3D, resolution: _Resolution3D) -> _F:
    """Cell-centred sample points, shape ``(nz, ny, nx, 3)``."""
    if any(int(n) != n or n < 1 for n in resolution):
        raise FieldConfigError(f"resolution must be positive integers, got {resolution!r}")
    if any(hi <= lo for lo, hi in bounds):
        raise FieldConfigError(f"bounds must be increasing, got {bounds!r}")

    axes = [
        np.linspace(lo, hi, n, endpoint=False) + (hi - lo) / (2.0 * n)
        for (lo, hi), n in zip(bounds, resolution)
    ]
    Z, Y, X = np.meshgrid(axes[2], axes[1], axes[0], indexing="ij")
    return np.stack([X, Y, Z], axis=-1)


def sample_field(field: Field, bounds: _Bounds3D, resolution: _Resolution3D) -> _F:
    """Sample *field* on a uniform cell-centred grid.

    Parameters
    ----------
    field:
        Any :class:`~implicit3d.fields.Field`.
    bounds:
        ``((x0, x1), (y0, y1), (z0, z1))`` physical extents.
    resolution:
        ``(nx, ny, nz)`` number of cells along each axis.

    Returns
    -------
    numpy.ndarray
        Shape ``(nz, ny, nx)`` array of field values, z-first indexing.
    """
    return field.eval(grid_points(bounds, resolution))
