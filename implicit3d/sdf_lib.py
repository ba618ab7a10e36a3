"""Vectorised scalar-field math for implicit3d.

Every function accepts a point array *p* of shape ``(..., 3)`` and returns
``(...)`` scalars (gradients come back as ``(..., 3)``).  A single point of
shape ``(3,)`` yields 0-d results.

Closed-form primitives follow Inigo Quilez's distance function reference
(https://iquilezles.org/articles/distfunctions/).  The implicit fields
(Goursat tangle, Möbius band, sphube, supershape, gyroid) are potentials
whose magnitude is only distance-like near the surface.
"""

from __future__ import annotations

from typing import Callable, Sequence, Tuple

import numpy as np

from ._common import (  # noqa: F401  re-exported for callers of sdf_lib
    _F,
    vec2,
    vec3,
    length,
    dot,
    dot2,
    clamp,
    safe_div,
    normalize,
    opUnion,
    opSubtraction,
    opIntersection,
    opRound,
    opOnion,
)

PHI = 1.618033988749895

# Face normals of the icosahedron (one per antipodal face pair).
ICOSAHEDRON_NORMALS = normalize(np.array([
    [1.0, 1.0, 1.0],
    [-1.0, 1.0, 1.0],
    [1.0, -1.0, 1.0],
    [1.0, 1.0, -1.0],
    [0.0, 1.0, PHI + 1.0],
    [0.0, -1.0, PHI + 1.0],
    [PHI + 1.0, 0.0, 1.0],
    [-PHI - 1.0, 0.0, 1.0],
    [1.0, PHI + 1.0, 0.0],
    [-1.0, PHI + 1.0, 0.0],
]))

# Face normals of the dodecahedron (one per antipodal face pair).
DODECAHEDRON_NORMALS = normalize(np.array([
    [0.0, PHI, 1.0],
    [0.0, -PHI, 1.0],
    [1.0, 0.0, PHI],
    [-1.0, 0.0, PHI],
    [PHI, 1.0, 0.0],
    [-PHI, 1.0, 0.0],
]))


# ===========================================================================
# Exact primitives
# ===========================================================================

def sdSphere(p: _F, r: float) -> _F:
    """Sphere of radius *r* centred at the origin."""
    return length(p) - r


def sdBox(p: _F, b: _F) -> _F:
    """Axis-aligned box with half-extents *b*."""
    q = np.abs(p) - b
    return length(np.maximum(q, 0.0)) + np.minimum(np.max(q, axis=-1), 0.0)


def sdRoundBox(p: _F, b: _F, r: float) -> _F:
    """Box with half-extents *b* whose edges are rounded by *r*."""
    q = np.abs(p) - b + r
    return length(np.maximum(q, 0.0)) + np.minimum(np.max(q, axis=-1), 0.0) - r


def sdCappedCylinder(p: _F, r: float, h: float) -> _F:
    """Cylinder along Y with radius *r* and half-height *h*."""
    d = np.abs(vec2(length(p[..., [0, 2]]), p[..., 1])) - np.array([r, h])
    return np.minimum(np.max(d, axis=-1), 0.0) + length(np.maximum(d, 0.0))


def sdRoundedCylinder(p: _F, ra: float, rb: float, h: float) -> _F:
    """Cylinder along Y: radius *ra*, edge radius *rb*, half-height *h*."""
    d = vec2(length(p[..., [0, 2]]) - ra + rb, np.abs(p[..., 1]) - h + rb)
    return np.minimum(np.max(d, axis=-1), 0.0) + length(np.maximum(d, 0.0)) - rb


def sdTorus(p: _F, major: float, minor: float) -> _F:
    """Torus lying in the XZ plane around the Y axis."""
    q = vec2(length(p[..., [0, 2]]) - major, p[..., 1])
    return length(q) - minor


def sdOctahedron(p: _F, s: float) -> _F:
    """Octahedron with vertices at distance *s* on each axis.

    The point is folded into the positive octant, then rotated so the
    closest face edge is measured in a canonical orientation.
    """
    p = np.abs(p)
    m = p[..., 0] + p[..., 1] + p[..., 2] - s
    face = m * 0.57735027
    in_x = 3.0 * p[..., 0] < m
    in_y = ~in_x & (3.0 * p[..., 1] < m)
    in_z = ~in_x & ~in_y & (3.0 * p[..., 2] < m)
    q = np.where(in_x[..., None], p, 0.0)
    q = np.where(in_y[..., None], p[..., [1, 2, 0]], q)
    q = np.where(in_z[..., None], p[..., [2, 0, 1]], q)
    k = clamp(0.5 * (q[..., 2] - q[..., 1] + s), 0.0, s)
    edge = length(vec3(q[..., 0], q[..., 1] - s + k, q[..., 2] - k))
    return np.where(in_x | in_y | in_z, edge, face)


def sphereGradient(p: _F) -> _F:
    """Gradient of :func:`sdSphere` (radius independent)."""
    return normalize(p)


def boxGradient(p: _F, b: _F) -> _F:
    """Gradient of :func:`sdBox`.

    Outside the box this is the direction from the nearest box point; inside
    it is the normal of the nearest face.  Components on a symmetry plane
    take the positive side.
    """
    side = np.where(p >= 0.0, 1.0, -1.0)
    q = np.abs(p) - b
    outer = normalize(np.maximum(q, 0.0)) * side
    nearest = np.argmax(q, axis=-1)
    inner = (np.arange(3) == nearest[..., None]) * side
    return np.where((np.max(q, axis=-1) > 0.0)[..., None], outer, inner)


# ===========================================================================
# Support-function accumulator
# ===========================================================================

def sdSupport(p: _F, normals: _F, r: float, exponent: float | None = None) -> _F:
    """Polytope-like field built from projections onto *normals*.

    With ``exponent=None`` the projections are combined with ``max``, which
    gives flat facets.  Otherwise the p-norm ``(sum |p.n|^e)^(1/e)`` is used,
    rounding the corners; larger exponents approach the faceted solid.  The
    largest projection is factored out before raising to the exponent.
    """
    proj = np.abs(p @ normals.T)
    peak = np.max(proj, axis=-1)
    if exponent is None:
        return peak - r
    scale = np.where(peak > 0.0, peak, 1.0)
    ratio = proj / scale[..., None]
    return peak * np.sum(ratio ** exponent, axis=-1) ** (1.0 / exponent) - r


def sdIcosahedron(p: _F, r: float, exponent: float | None = None) -> _F:
    return sdSupport(p, ICOSAHEDRON_NORMALS, r, exponent)


def sdDodecahedron(p: _F, r: float, exponent: float | None = None) -> _F:
    return sdSupport(p, DODECAHEDRON_NORMALS, r, exponent)


# ===========================================================================
# Goursat tangle
# ===========================================================================

def goursatTangle(p: _F, a: float, b: float, c: float) -> Tuple[_F, _F]:
    """Quartic tangle potential and its analytic gradient.

    ``f = x^4 + y^4 + z^4 + a r^4 + b r^2 + c`` with ``r^2 = x^2 + y^2 + z^2``.
    """
    p2 = p * p
    r2 = np.sum(p2, axis=-1)
    val = np.sum(p2 * p2, axis=-1) + a * r2 * r2 + b * r2 + c
    common = 4.0 * a * r2 + 2.0 * b
    grad = p * (4.0 * p2 + common[..., None])
    return val, grad


# ===========================================================================
# Möbius band
# ===========================================================================

def _toroidalFrame(p: _F, radius: float, twists: float):
    """Angle around Z, twist cos/sin, and the offset from the centre ring."""
    angle = np.arctan2(p[..., 1], p[..., 0])
    twist = twists * 0.5 * angle
    qx = np.hypot(p[..., 0], p[..., 1]) - radius
    return angle, np.cos(twist), np.sin(twist), qx, p[..., 2]


def sdMobius(
    p: _F,
    radius: float,
    width: float,
    thickness: float,
    twists: float,
    distortion: float,
) -> _F:
    """Twisted band around the Z axis, scaled by *distortion*.

    The rectangle distance is measured in the twisted frame, which stretches
    space away from the centre ring; *distortion* shrinks the result so it
    stays a usable step size.
    """
    _, tc, ts, qx, qy = _toroidalFrame(p, radius, twists)
    u = tc * qx - ts * qy
    v = ts * qx + tc * qy
    d = vec2(np.abs(u) - width, np.abs(v) - thickness)
    dist = length(np.maximum(d, 0.0)) + np.minimum(np.max(d, axis=-1), 0.0)
    return dist * distortion


def projectMobius(
    p: _F,
    radius: float,
    width: float,
    thickness: float,
    twists: float,
) -> _F:
    """Nearest point on the band surface, without iteration.

    The local ``(u, v)`` coordinates are clamped to the band's cross-section;
    points strictly inside snap to the nearer edge instead.  The result is
    mapped back through the twisted frame.
    """
    angle, tc, ts, qx, qy = _toroidalFrame(p, radius, twists)
    u = tc * qx - ts * qy
    v = ts * qx + tc * qy

    cu = clamp(u, -width, width)
    cv = clamp(v, -thickness, thickness)

    inside = (np.abs(u) < width) & (np.abs(v) < thickness)
    snap_u = inside & (width - np.abs(u) < thickness - np.abs(v))
    snap_v = inside & ~snap_u
    cu = np.where(snap_u, np.where(u > 0.0, width, -width), cu)
    cv = np.where(snap_v, np.where(v > 0.0, thickness, -thickness), cv)

    nqx = tc * cu + ts * cv
    nqy = -ts * cu + tc * cv
    ring = radius + nqx
    return vec3(np.cos(angle) * ring, np.sin(angle) * ring, nqy)


# ===========================================================================
# Sphube (rounded cube)
# ===========================================================================

def sphubePotential(p: _F, r: float, s: float) -> Tuple[_F, _F]:
    """Rounded-cube potential and its analytic gradient.

    *r* is the half-size and *s* the squareness (0 = sphere, 1 = cube).
    See https://arxiv.org/pdf/1604.02174v2.
    """
    r2 = r * r
    k2 = s * s / r2
    k4 = k2 * k2
    x2, y2, z2 = p[..., 0] ** 2, p[..., 1] ** 2, p[..., 2] ** 2
    potential = (
        x2 + y2 + z2
        - k2 * (x2 * y2 + y2 * z2 + z2 * x2)
        + k4 * (x2 * y2 * z2)
        - r2
    )
    grad = 2.0 * p * vec3(
        1.0 - k2 * (y2 + z2) + k4 * (y2 * z2),
        1.0 - k2 * (x2 + z2) + k4 * (x2 * z2),
        1.0 - k2 * (x2 + y2) + k4 * (x2 * y2),
    )
    return potential, grad


def sdSphube(p: _F, r: float, s: float, margin: float) -> _F:
    """Bounded distance estimate for the sphube.

    Points farther than *margin* from the bounding box get the box distance
    and the potential is never evaluated for them.  Closer points use
    ``potential / sqrt(|grad|^2 + 1)``, never less than the box distance.
    """
    pts = p.reshape(-1, 3)
    half = np.full(3, r)
    out = sdBox(pts, half)
    near = out <= margin
    if np.any(near):
        potential, grad = sphubePotential(pts[near], r, s)
        estimate = potential / np.sqrt(dot2(grad) + 1.0)
        out[near] = np.maximum(estimate, out[near])
    return out.reshape(p.shape[:-1])


def sphubeGradient(p: _F, r: float, s: float, margin: float) -> _F:
    """Gradient of :func:`sdSphube`, taken from whichever term is active."""
    pts = p.reshape(-1, 3)
    half = np.full(3, r)
    bounds = sdBox(pts, half)
    grad = boxGradient(pts, half)
    near = bounds <= margin
    if np.any(near):
        potential, g = sphubePotential(pts[near], r, s)
        glen = np.sqrt(dot2(g) + 1.0)
        use_potential = potential / glen > bounds[near]
        grad[near] = np.where(use_potential[:, None], g / glen[:, None], grad[near])
    return grad.reshape(p.shape)


# ===========================================================================
# Sampled-curve tube
# ===========================================================================

def trefoilKnot(t: _F) -> _F:
    """Trefoil knot curve, periodic over ``[0, 2*pi]``."""
    t = np.asarray(t, dtype=float)
    return vec3(
        np.sin(t) + 2.0 * np.sin(2.0 * t),
        np.cos(t) - 2.0 * np.cos(2.0 * t),
        -np.sin(3.0 * t),
    )


def sampleCurve(
    curve: Callable[[_F], _F],
    samples: int,
    t0: float,
    t1: float,
    closed: bool,
) -> Tuple[_F, _F]:
    """Chop *curve* into segment start/end arrays, each of shape ``(N, 3)``.

    A closed curve yields *samples* segments whose last end is ``curve(t1)``;
    an open one yields ``samples - 1`` segments between *samples* points.
    """
    n = samples + 1 if closed else samples
    pts = np.asarray(curve(np.linspace(t0, t1, n)), dtype=float)
    return pts[:-1].copy(), pts[1:].copy()


def sdSegments(p: _F, a: _F, b: _F, radius: float) -> _F:
    """Distance to the nearest of the segments ``a[i] -> b[i]`` minus *radius*.

    Segments are visited one at a time so memory stays proportional to the
    number of query points.
    """
    best = np.full(p.shape[:-1], np.inf)
    for sa, sb in zip(a, b):
        pa = p - sa
        ba = sb - sa
        h = clamp(safe_div(dot(pa, ba), dot2(ba)), 0.0, 1.0)
        best = np.minimum(best, dot2(pa - ba * h[..., None]))
    return np.sqrt(best) - radius


# ===========================================================================
# Gyroid
# ===========================================================================

def sdGyroid(p: _F, size: float, thickness: float, scale: float) -> _F:
    """Thickened gyroid sheet clipped to a cube of half-size *size*."""
    x, y, z = p[..., 0], p[..., 1], p[..., 2]
    sheet = scale * scale * (
        np.sin(x) * np.cos(y) + np.sin(y) * np.cos(z) + np.sin(z) * np.cos(x)
    )
    cube = np.max(np.abs(p), axis=-1) - size
    return np.maximum(np.abs(sheet) - thickness, cube)


# ===========================================================================
# Supershape
# ===========================================================================

def superformula(
    phi: _F,
    m: float,
    n1: float,
    n2: float,
    n3: float,
    a: float = 1.0,
    b: float = 1.0,
) -> _F:
    """Gielis superformula radius at angle *phi*."""
    with np.errstate(divide="ignore", over="ignore", invalid="ignore"):
        part1 = np.abs(np.cos(m * phi / 4.0) / a) ** n2
        part2 = np.abs(np.sin(m * phi / 4.0) / b) ** n3
        return (part1 + part2) ** (-1.0 / n1)


def sdSuperShape(
    p: _F,
    params1: Sequence[float],
    params2: Sequence[float],
    offset: float,
) -> _F:
    """Spherical-product supershape.

    *params1* drives the longitude profile and *params2* the latitude one;
    each is ``(m, n1, n2, n3, a, b)``.  A zero radial distance yields 0.
    """
    d = length(p) + offset
    centre = d == 0.0
    sn = clamp(p[..., 2] / np.where(centre, 1.0, d), -1.0, 1.0)
    phi = np.arctan2(p[..., 1], p[..., 0])
    rho = np.arcsin(sn)
    r1 = superformula(phi, *params1)
    r2 = superformula(rho, *params2)
    with np.errstate(invalid="ignore", over="ignore"):
        out = d - r2 * np.sqrt(r1 * r1 * (1.0 - sn * sn) + sn * sn)
    return np.where(centre, 0.0, out)
