"""Field classes: immutable scalar fields with accuracy and projection tags."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from . import sdf_lib as sdf
from ._common import _F, _FieldFunc, as_points, normalize
from .errors import FieldConfigError

logger = logging.getLogger(__name__)

_GradFunc = Callable[[_F], _F]

DEFAULT_GRADIENT_STEP = 1e-4


class Accuracy(enum.Enum):
    """How far a field's value can be trusted as a distance."""

    #: The value never overestimates the distance to the surface.
    EXACT = "exact"
    #: A potential that is only distance-like close to the surface.
    APPROXIMATE = "approximate"


class Projection(enum.Enum):
    """How the nearest surface point of a field can be found."""

    ITERATIVE = "iterative"
    ANALYTIC = "analytic"


def numerical_gradient(func: _FieldFunc, p: _F, h: float = DEFAULT_GRADIENT_STEP) -> _F:
    """Central-difference gradient of *func* at ``(..., 3)`` points."""
    offsets = np.eye(3) * h
    q = p[..., None, :]
    return (func(q + offsets) - func(q - offsets)) / (2.0 * h)


def _scalar(values: _F, p: _F):
    return float(values) if p.ndim == 1 else values


def _positive(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise FieldConfigError(f"{name} must be a positive number, got {value!r}")
    return value


def _non_negative(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0.0:
        raise FieldConfigError(f"{name} must be a non-negative number, got {value!r}")
    return value


def _finite(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise FieldConfigError(f"{name} must be finite, got {value!r}")
    return value


def _frozen_array(values, name: str, size: int = 3) -> _F:
    arr = np.array(values, dtype=float)
    if arr.shape != (size,):
        raise FieldConfigError(f"{name} must have {size} components, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise FieldConfigError(f"{name} must be finite, got {tuple(arr.tolist())}")
    arr.setflags(write=False)
    return arr


# ===========================================================================
# Base class
# ===========================================================================

class Field:
    """A pure scalar field over 3-D space.

    A ``Field`` wraps a vectorised callable ``func(p) -> values`` where *p*
    is a ``(..., 3)`` array.  Negative values are inside the shape.  An
    analytic gradient may be supplied; otherwise :meth:`gradient` falls back
    to central differences.

    Fields are immutable once constructed: assigning an attribute raises
    ``AttributeError``.  Changing a shape means building a new field.

    Class-level tags:

    - :attr:`accuracy` — :class:`Accuracy` of the returned values.
    - :attr:`projection` — :class:`Projection` capability.  Fields tagged
      ``ANALYTIC`` implement :meth:`project`.
    """

    accuracy: Accuracy = Accuracy.EXACT
    projection: Projection = Projection.ITERATIVE

    def __init__(
        self,
        func: _FieldFunc,
        gradient: Optional[_GradFunc] = None,
        accuracy: Optional[Accuracy] = None,
    ) -> None:
        self._func = func
        self._gradient = gradient
        if accuracy is not None:
            self.accuracy = accuracy
        self._frozen = True

    def __setattr__(self, name: str, value) -> None:
        if self.__dict__.get("_frozen", False):
            raise AttributeError(
                f"{type(self).__name__} is immutable; construct a new field instead"
            )
        object.__setattr__(self, name, value)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def eval(self, p):
        """Field value at *p*.

        A single point ``(3,)`` gives a ``float``; a ``(..., 3)`` batch gives
        an array of shape ``(...)``.
        """
        p = as_points(p)
        return _scalar(self._func(p), p)

    def __call__(self, p):
        return self.eval(p)

    @property
    def has_analytic_gradient(self) -> bool:
        return self._gradient is not None

    def gradient(self, p, h: float = DEFAULT_GRADIENT_STEP) -> _F:
        """Gradient at *p*: analytic when available, else central differences."""
        p = as_points(p)
        if self._gradient is not None:
            return self._gradient(p)
        return numerical_gradient(self._func, p, h)

    def eval_with_gradient(self, p, h: float = DEFAULT_GRADIENT_STEP):
        """Return ``(value, gradient)`` at *p*."""
        p = as_points(p)
        return _scalar(self._func(p), p), self.gradient(p, h)

    def normal(self, p, h: float = DEFAULT_GRADIENT_STEP) -> _F:
        """Unit gradient at *p*; zero where the gradient vanishes."""
        return normalize(self.gradient(p, h))

    def project(self, p) -> _F:
        """Exact nearest surface point; only for ``Projection.ANALYTIC`` fields."""
        raise TypeError(f"{type(self).__name__} has no analytic projection")

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def union(self, other: Field) -> Field:
        """Return the union (min) of this field and *other*."""
        return Union(self, other)

    def subtract(self, other: Field) -> Field:
        """Cut *other* out of this field."""
        return Subtraction(self, other)

    def intersect(self, other: Field) -> Field:
        """Return the intersection (max) of this field and *other*."""
        return Intersection(self, other)

    def round(self, radius: float) -> Field:
        """Grow the surface outward by *radius*."""
        radius = _non_negative("radius", radius)
        return Field(
            lambda p: sdf.opRound(self._func(p), radius),
            self._gradient,
            self.accuracy,
        )

    def onion(self, thickness: float) -> Field:
        """Turn the solid into a shell of *thickness*."""
        thickness = _positive("thickness", thickness)
        return Field(lambda p: sdf.opOnion(self._func(p), thickness), None, self.accuracy)

    def translate(self, dx: float, dy: float, dz: float) -> Field:
        """Move the shape by ``(dx, dy, dz)``."""
        t = _frozen_array((dx, dy, dz), "offset")
        grad = None
        if self._gradient is not None:
            grad = lambda p: self._gradient(p - t)  # noqa: E731
        return Field(lambda p: self._func(p - t), grad, self.accuracy)

    def scale(self, s: float) -> Field:
        """Uniformly scale the shape by factor *s*."""
        s = _positive("scale", s)
        grad = None
        if self._gradient is not None:
            grad = lambda p: self._gradient(p / s)  # noqa: E731
        return Field(lambda p: self._func(p / s) * s, grad, self.accuracy)


# ===========================================================================
# Exact primitives
# ===========================================================================

class Sphere(Field):
    """Sphere of *radius* centred at the origin."""

    def __init__(self, radius: float) -> None:
        self.radius = _positive("radius", radius)
        r = self.radius
        super().__init__(lambda p: sdf.sdSphere(p, r), sdf.sphereGradient)


class Box(Field):
    """Axis-aligned box with *half_size* ``(hx, hy, hz)``."""

    def __init__(self, half_size: Sequence[float]) -> None:
        b = _frozen_array(half_size, "half_size")
        if np.any(b <= 0.0):
            raise FieldConfigError(f"half_size must be positive, got {tuple(b)}")
        self.half_size = b
        super().__init__(lambda p: sdf.sdBox(p, b), lambda p: sdf.boxGradient(p, b))


class RoundBox(Field):
    """Box with *half_size* whose edges are rounded by *radius*."""

    def __init__(self, half_size: Sequence[float], radius: float) -> None:
        b = _frozen_array(half_size, "half_size")
        if np.any(b <= 0.0):
            raise FieldConfigError(f"half_size must be positive, got {tuple(b)}")
        r = _non_negative("radius", radius)
        if r > b.min():
            raise FieldConfigError("radius cannot exceed the smallest half-size")
        self.half_size = b
        self.radius = r
        super().__init__(lambda p: sdf.sdRoundBox(p, b, r))


class CappedCylinder(Field):
    """Cylinder along Y with *radius* and *half_height*."""

    def __init__(self, radius: float, half_height: float) -> None:
        self.radius = _positive("radius", radius)
        self.half_height = _positive("half_height", half_height)
        r, h = self.radius, self.half_height
        super().__init__(lambda p: sdf.sdCappedCylinder(p, r, h))


class RoundedCylinder(Field):
    """Cylinder along Y with rounded rims.

    Parameters
    ----------
    radius:
        Outer radius.
    edge_radius:
        Radius of the rim rounding.
    half_height:
        Half of the total height.
    """

    def __init__(self, radius: float, edge_radius: float, half_height: float) -> None:
        ra = _positive("radius", radius)
        rb = _non_negative("edge_radius", edge_radius)
        h = _positive("half_height", half_height)
        if rb > min(ra, h):
            raise FieldConfigError("edge_radius cannot exceed radius or half_height")
        self.radius, self.edge_radius, self.half_height = ra, rb, h
        super().__init__(lambda p: sdf.sdRoundedCylinder(p, ra, rb, h))


class Torus(Field):
    """Torus in the XZ plane.

    Parameters
    ----------
    major:
        Radius of the tube's centre circle.
    minor:
        Radius of the tube cross-section.
    """

    def __init__(self, major: float, minor: float) -> None:
        self.major = _positive("major", major)
        self.minor = _positive("minor", minor)
        R, r = self.major, self.minor
        super().__init__(lambda p: sdf.sdTorus(p, R, r))


class Octahedron(Field):
    """Regular octahedron with vertices at distance *size* along each axis."""

    def __init__(self, size: float) -> None:
        self.size = _positive("size", size)
        s = self.size
        super().__init__(lambda p: sdf.sdOctahedron(p, s))


# ===========================================================================
# Support-function polyhedra
# ===========================================================================

class SupportPolyhedron(Field):
    """Polytope-like field accumulated over a fixed set of unit *normals*.

    Parameters
    ----------
    normals:
        ``(N, 3)`` unit vectors, one per antipodal pair of faces.
    radius:
        Distance from the centre to each face.
    exponent:
        ``None`` for flat facets (exact), or a positive p-norm exponent for
        rounded corners (approximate).
    """

    def __init__(
        self,
        normals: Sequence[Sequence[float]],
        radius: float,
        exponent: Optional[float] = None,
    ) -> None:
        n = np.array(normals, dtype=float)
        if n.ndim != 2 or n.shape[0] == 0 or n.shape[1] != 3:
            raise FieldConfigError(f"normals must be a non-empty (N, 3) array, got shape {n.shape}")
        if not np.allclose(sdf.length(n), 1.0, atol=1e-6):
            raise FieldConfigError("normals must be unit length")
        n.setflags(write=False)
        r = _positive("radius", radius)
        e = None if exponent is None else _positive("exponent", exponent)
        self.normals, self.radius, self.exponent = n, r, e
        super().__init__(
            lambda p: sdf.sdSupport(p, n, r, e),
            accuracy=Accuracy.EXACT if e is None else Accuracy.APPROXIMATE,
        )


class Icosahedron(SupportPolyhedron):
    """Icosahedron of inradius *radius*; see :class:`SupportPolyhedron`."""

    def __init__(self, radius: float, exponent: Optional[float] = None) -> None:
        super().__init__(sdf.ICOSAHEDRON_NORMALS, radius, exponent)


class Dodecahedron(SupportPolyhedron):
    """Dodecahedron of inradius *radius*; see :class:`SupportPolyhedron`."""

    def __init__(self, radius: float, exponent: Optional[float] = None) -> None:
        super().__init__(sdf.DODECAHEDRON_NORMALS, radius, exponent)


# ===========================================================================
# Implicit fields
# ===========================================================================

class GoursatTangle(Field):
    """Goursat tangle: ``x^4 + y^4 + z^4 + a r^4 + b r^2 + c``.

    The value is a quartic potential, not a distance.
    """

    accuracy = Accuracy.APPROXIMATE

    def __init__(self, a: float = 0.0, b: float = -2.0, c: float = 1.5) -> None:
        self.a, self.b, self.c = _finite("a", a), _finite("b", b), _finite("c", c)
        ka, kb, kc = self.a, self.b, self.c
        super().__init__(
            lambda p: sdf.goursatTangle(p, ka, kb, kc)[0],
            lambda p: sdf.goursatTangle(p, ka, kb, kc)[1],
        )

    def eval_with_gradient(self, p, h: float = DEFAULT_GRADIENT_STEP):
        p = as_points(p)
        val, grad = sdf.goursatTangle(p, self.a, self.b, self.c)
        return _scalar(val, p), grad


class MobiusBand(Field):
    """Twisted band around the Z axis.

    Parameters
    ----------
    radius:
        Radius of the band's centre ring in the XY plane.
    width:
        Half-width of the band cross-section.
    thickness:
        Half-thickness of the band cross-section.
    twists:
        Number of half-turns the cross-section makes around the ring.
    distortion:
        Factor applied to the frame-space distance (0.8 keeps steps safe
        for a single half-twist).

    The nearest surface point is available in closed form via
    :meth:`project`.
    """

    accuracy = Accuracy.APPROXIMATE
    projection = Projection.ANALYTIC

    def __init__(
        self,
        radius: float = 2.0,
        width: float = 1.0,
        thickness: float = 0.1,
        twists: float = 1.0,
        distortion: float = 0.8,
    ) -> None:
        self.radius = _positive("radius", radius)
        self.width = _positive("width", width)
        self.thickness = _positive("thickness", thickness)
        self.twists = _finite("twists", twists)
        self.distortion = _positive("distortion", distortion)
        R, w, t, k, c = self.radius, self.width, self.thickness, self.twists, self.distortion
        super().__init__(lambda p: sdf.sdMobius(p, R, w, t, k, c))

    def project(self, p) -> _F:
        p = as_points(p)
        return sdf.projectMobius(p, self.radius, self.width, self.thickness, self.twists)


class Sphube(Field):
    """Rounded cube interpolating between a sphere and a cube.

    Parameters
    ----------
    radius:
        Half-size of the bounding cube.
    squareness:
        0 gives a sphere, 1 a cube.
    bound_margin:
        Beyond this distance from the bounding cube the cube distance is
        returned and the potential is skipped.
    """

    accuracy = Accuracy.APPROXIMATE

    def __init__(self, radius: float, squareness: float, bound_margin: float = 0.2) -> None:
        self.radius = _positive("radius", radius)
        self.squareness = _non_negative("squareness", squareness)
        self.bound_margin = _non_negative("bound_margin", bound_margin)
        r, s, m = self.radius, self.squareness, self.bound_margin
        super().__init__(
            lambda p: sdf.sdSphube(p, r, s, m),
            lambda p: sdf.sphubeGradient(p, r, s, m),
        )

    def potential_with_gradient(self, p) -> Tuple[_F, _F]:
        """Raw potential and its analytic gradient, with no bounding."""
        p = as_points(p)
        val, grad = sdf.sphubePotential(p, self.radius, self.squareness)
        return _scalar(val, p), grad


class SampledCurveTube(Field):
    """Tube of *radius* around a parametric curve sampled into segments.

    The curve is chopped once at construction; queries measure the nearest
    segment, so accuracy depends on *samples*.

    Parameters
    ----------
    curve:
        Vectorised ``curve(t) -> (..., 3)``.
    radius:
        Tube radius.
    samples:
        Number of samples along the parameter range.
    t_range:
        ``(t0, t1)`` parameter interval.
    closed:
        Whether ``curve(t1)`` joins back to ``curve(t0)``.
    """

    def __init__(
        self,
        curve: Callable[[_F], _F],
        radius: float,
        samples: int = 120,
        t_range: Tuple[float, float] = (0.0, 2.0 * math.pi),
        closed: bool = True,
    ) -> None:
        minimum = 3 if closed else 2
        if int(samples) != samples or samples < minimum:
            raise FieldConfigError(f"samples must be an integer >= {minimum}, got {samples!r}")
        t0, t1 = _finite("t0", t_range[0]), _finite("t1", t_range[1])
        if t1 <= t0:
            raise FieldConfigError("t_range must be increasing")
        r = _non_negative("radius", radius)
        a, b = sdf.sampleCurve(curve, int(samples), t0, t1, closed)
        a.setflags(write=False)
        b.setflags(write=False)
        logger.debug("sampled curve into %d segments", len(a))
        self.radius, self.samples, self.closed = r, int(samples), closed
        self.segment_starts, self.segment_ends = a, b
        super().__init__(lambda p: sdf.sdSegments(p, a, b, r))


class TrefoilTube(SampledCurveTube):
    """Tube around a trefoil knot; see :func:`sdf_lib.trefoilKnot`."""

    def __init__(self, radius: float = 0.5, samples: int = 120) -> None:
        super().__init__(sdf.trefoilKnot, radius, samples)


class Gyroid(Field):
    """Gyroid sheet of *thickness* clipped to a cube of half-size *size*."""

    accuracy = Accuracy.APPROXIMATE

    def __init__(self, size: float, thickness: float, scale: float = 1.0) -> None:
        self.size = _positive("size", size)
        self.thickness = _non_negative("thickness", thickness)
        self.scale_factor = _positive("scale", scale)
        s, t, k = self.size, self.thickness, self.scale_factor
        super().__init__(lambda p: sdf.sdGyroid(p, s, t, k))


@dataclass(frozen=True)
class SuperformulaParams:
    """One superformula profile: ``m`` symmetry, ``n1..n3`` shape, ``a``/``b`` scale."""

    m: float
    n1: float
    n2: float
    n3: float
    a: float = 1.0
    b: float = 1.0

    def __post_init__(self) -> None:
        if not all(math.isfinite(v) for v in self.as_tuple()):
            raise FieldConfigError(f"superformula parameters must be finite, got {self.as_tuple()}")
        if self.n1 == 0.0:
            raise FieldConfigError("n1 must be non-zero")
        if self.a == 0.0 or self.b == 0.0:
            raise FieldConfigError("a and b must be non-zero")

    def as_tuple(self) -> Tuple[float, ...]:
        return (self.m, self.n1, self.n2, self.n3, self.a, self.b)


SUPERSHAPE_PRESETS: Dict[str, Tuple[SuperformulaParams, SuperformulaParams]] = {
    "codevember": (
        SuperformulaParams(m=5.9, n1=2.7, n2=4.7, n3=7.4, a=1.2, b=0.8),
        SuperformulaParams(m=17, n1=35, n2=14, n3=-15, a=1.8, b=2),
    ),
    "sphere": (
        SuperformulaParams(m=0.01, n1=0.1, n2=0.01, n3=5),
        SuperformulaParams(m=0.01, n1=0.1, n2=0.01, n3=5),
    ),
    "rounded-cube": (
        SuperformulaParams(m=4, n1=10, n2=10, n3=10),
        SuperformulaParams(m=4, n1=10, n2=10, n3=10),
    ),
    "doughboy": (
        SuperformulaParams(m=6, n1=-4.8, n2=7.54, n3=6.4),
        SuperformulaParams(m=11.43, n1=1.5, n2=0, n3=5.9),
    ),
}


class SuperShape(Field):
    """Supershape built from a longitude and a latitude superformula.

    Use :meth:`from_preset` for the named shapes in
    :data:`SUPERSHAPE_PRESETS`.
    """

    accuracy = Accuracy.APPROXIMATE

    def __init__(
        self,
        params1: SuperformulaParams,
        params2: SuperformulaParams,
        offset: float = 0.0,
    ) -> None:
        self.params1, self.params2 = params1, params2
        self.offset = _finite("offset", offset)
        a, b, o = params1.as_tuple(), params2.as_tuple(), self.offset
        super().__init__(lambda p: sdf.sdSuperShape(p, a, b, o))

    @classmethod
    def from_preset(cls, name: str, offset: float = 0.0) -> "SuperShape":
        try:
            params1, params2 = SUPERSHAPE_PRESETS[name]
        except KeyError:
            raise FieldConfigError(
                f"unknown supershape preset {name!r}; choose from {sorted(SUPERSHAPE_PRESETS)}"
            ) from None
        return cls(params1, params2, offset)


# ===========================================================================
# Boolean combinations
# ===========================================================================

class Union(Field):
    """Union of one or more fields (minimum value).

    The minimum is only a bound on the distance inside the union, so the
    result is always tagged approximate.
    """

    def __init__(self, *fields: Field) -> None:
        if not fields:
            raise FieldConfigError("Union needs at least one field")
        self.fields = fields

        def _func(p: _F) -> _F:
            d = fields[0]._func(p)
            for f in fields[1:]:
                d = sdf.opUnion(d, f._func(p))
            return d

        super().__init__(_func, accuracy=Accuracy.APPROXIMATE)


class Intersection(Field):
    """Intersection of one or more fields (maximum value).

    Outside, the maximum underestimates the distance near the seams where
    operands meet; the result is tagged approximate.
    """

    def __init__(self, *fields: Field) -> None:
        if not fields:
            raise FieldConfigError("Intersection needs at least one field")
        self.fields = fields

        def _func(p: _F) -> _F:
            d = fields[0]._func(p)
            for f in fields[1:]:
                d = sdf.opIntersection(d, f._func(p))
            return d

        super().__init__(_func, accuracy=Accuracy.APPROXIMATE)


class Subtraction(Field):
    """Cut *cutter* out of *base*.  Approximate, like :class:`Intersection`."""

    def __init__(self, base: Field, cutter: Field) -> None:
        self.base, self.cutter = base, cutter
        super().__init__(
            lambda p: sdf.opSubtraction(cutter._func(p), base._func(p)),
            accuracy=Accuracy.APPROXIMATE,
        )


# ===========================================================================
# Functional entry points
# ===========================================================================

def evaluate(field: Field, point):
    """Field value at *point* (distance or potential, per ``field.accuracy``)."""
    return field.eval(point)


def evaluate_with_gradient(field: Field, point, h: float = DEFAULT_GRADIENT_STEP):
    """``(value, gradient)`` of *field* at *point*."""
    return field.eval_with_gradient(point, h)
