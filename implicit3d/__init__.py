"""
implicit3d — Implicit Surface Evaluation and Projection
=======================================================

A CPU library for scalar fields describing 3-D shapes: evaluate a field,
trace rays onto it, and project points onto its surface even when the
shape has no closed-form inverse.

Implemented features
--------------------
- Exact primitives: Sphere, Box, RoundBox, CappedCylinder, RoundedCylinder,
  Torus, Octahedron
- Support-function polyhedra: SupportPolyhedron, Icosahedron, Dodecahedron
- Implicit fields: GoursatTangle, MobiusBand, Sphube, SampledCurveTube,
  TrefoilTube, Gyroid, SuperShape
- Boolean operations: Union, Intersection, Subtraction
- Sphere tracing: :func:`march`, :func:`march_batch`
- Newton projection: :func:`closest_point`, :func:`closest_points`
- Signed distances: :func:`signed_distance`, :func:`approximate_distance`,
  :func:`exact_closest_point`
- Grid sampling: :func:`sample_field`

Quick start
-----------

::

    import numpy as np
    from implicit3d import Sphere, GoursatTangle, march, closest_point

    hit = march(np.array([0.0, 0.0, 5.0]), np.array([0.0, 0.0, -1.0]), Sphere(1.0))
    hit.distance          # ~4.0

    res = closest_point(np.array([0.9, 0.9, 0.9]), GoursatTangle())
    res.point, res.converged
"""

from .errors import FieldConfigError
from .fields import (
    Accuracy,
    Projection,
    Field,
    Sphere,
    Box,
    RoundBox,
    CappedCylinder,
    RoundedCylinder,
    Torus,
    Octahedron,
    SupportPolyhedron,
    Icosahedron,
    Dodecahedron,
    GoursatTangle,
    MobiusBand,
    Sphube,
    SampledCurveTube,
    TrefoilTube,
    Gyroid,
    SuperformulaParams,
    SuperShape,
    SUPERSHAPE_PRESETS,
    Union,
    Intersection,
    Subtraction,
    evaluate,
    evaluate_with_gradient,
    numerical_gradient,
)
from .tracer import MarchConfig, RayHit, RayBatch, march, march_batch
from .projection import ProjectionConfig, ProjectionResult, closest_point, closest_points
from .distance import signed_distance, approximate_distance, exact_closest_point
from .grid import grid_points, sample_field

__version__ = "0.1.0"

__all__ = [
    # Errors
    "FieldConfigError",

    # Base and tags
    "Field",
    "Accuracy",
    "Projection",

    # Exact primitives
    "Sphere",
    "Box",
    "RoundBox",
    "CappedCylinder",
    "RoundedCylinder",
    "Torus",
    "Octahedron",

    # Support-function polyhedra
    "SupportPolyhedron",
    "Icosahedron",
    "Dodecahedron",

    # Implicit fields
    "GoursatTangle",
    "MobiusBand",
    "Sphube",
    "SampledCurveTube",
    "TrefoilTube",
    "Gyroid",
    "SuperformulaParams",
    "SuperShape",
    "SUPERSHAPE_PRESETS",

    # Boolean operations
    "Union",
    "Intersection",
    "Subtraction",

    # Evaluation
    "evaluate",
    "evaluate_with_gradient",
    "numerical_gradient",

    # Sphere tracing
    "MarchConfig",
    "RayHit",
    "RayBatch",
    "march",
    "march_batch",

    # Projection and distances
    "ProjectionConfig",
    "ProjectionResult",
    "closest_point",
    "closest_points",
    "signed_distance",
    "approximate_distance",
    "exact_closest_point",

    # Grid utilities
    "grid_points",
    "sample_field",
]
