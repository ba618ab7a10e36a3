"""Shared vector helpers for the implicit3d field library.

This module provides:

* **Type aliases**: :data:`_F`, :data:`_FieldFunc`
* **Vector constructors**: :func:`vec2`, :func:`vec3`, :func:`as_points`
* **Math helpers**: :func:`length`, :func:`dot`, :func:`dot2`, :func:`clamp`,
  :func:`safe_div`, :func:`normalize`
* **Combination operators**: :func:`opUnion`, :func:`opSubtraction`,
  :func:`opIntersection`, :func:`opRound`, :func:`opOnion`

Everything here operates on ``(..., 3)`` (or ``(..., 2)``) arrays and
allocates its results; nothing is cached between calls.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
import numpy.typing as npt

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------
_F = npt.NDArray[np.floating]
_FieldFunc = Callable[[_F], _F]

__all__ = [
    "_F", "_FieldFunc",
    "vec2", "vec3", "as_points",
    "length", "dot", "dot2", "clamp", "safe_div", "normalize",
    "opUnion", "opSubtraction", "opIntersection", "opRound", "opOnion",
]


# ===========================================================================
# Vector constructors
# ===========================================================================

def vec2(x: _F, y: _F) -> _F:
    """Stack *x* and *y* into a ``(..., 2)`` array."""
    x, y = np.broadcast_arrays(x, y)
    return np.stack([x, y], axis=-1)


def vec3(x: _F, y: _F, z: _F) -> _F:
    """Stack *x*, *y*, *z* into a ``(..., 3)`` array."""
    x, y, z = np.broadcast_arrays(x, y, z)
    return np.stack([x, y, z], axis=-1)


def as_points(p) -> _F:
    """Copy *p* into a fresh float array with a trailing axis of 3."""
    arr = np.array(p, dtype=float)
    if arr.shape[-1:] != (3,):
        raise ValueError(f"expected points with a trailing axis of 3, got shape {arr.shape}")
    return arr


# ===========================================================================
# Math helpers
# ===========================================================================

def length(v: _F) -> _F:
    """Euclidean length along the last axis."""
    return np.linalg.norm(v, axis=-1)


def dot(a: _F, b: _F) -> _F:
    """Dot product along the last axis."""
    return np.sum(a * b, axis=-1)


def dot2(a: _F) -> _F:
    """Squared length: ``dot(a, a)``."""
    return dot(a, a)


def clamp(x: _F, lo: float | _F, hi: float | _F) -> _F:
    """Clamp *x* element-wise to ``[lo, hi]``."""
    return np.minimum(np.maximum(x, lo), hi)


def safe_div(n: _F, d: _F, eps: float = 1e-12) -> _F:
    """Division that avoids exact zero in the denominator."""
    return n / np.where(np.abs(d) < eps, np.sign(d) * eps + eps, d)


def normalize(v: _F, eps: float = 1e-12) -> _F:
    """Unit vectors along the last axis; zero-length inputs stay zero."""
    n = length(v)[..., None]
    return np.where(n > eps, v / np.where(n > eps, n, 1.0), 0.0)


# ===========================================================================
# Combination operators
# ===========================================================================

def opUnion(d1: _F, d2: _F) -> _F:
    """Union of two fields: ``min(d1, d2)``."""
    return np.minimum(d1, d2)


def opSubtraction(d1: _F, d2: _F) -> _F:
    """Subtract *d1* from *d2*: ``max(-d1, d2)``."""
    return np.maximum(-d1, d2)


def opIntersection(d1: _F, d2: _F) -> _F:
    """Intersection of two fields: ``max(d1, d2)``."""
    return np.maximum(d1, d2)


def opRound(d: _F, rad: float) -> _F:
    """Grow a surface outward by *rad*."""
    return d - rad


def opOnion(d: _F, thickness: float) -> _F:
    """Turn a solid into a shell of *thickness*."""
    return np.abs(d) - thickness
