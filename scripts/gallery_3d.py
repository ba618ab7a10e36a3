"""Render every implicit3d field as an isosurface on one page.

Each field is sampled on a cell-centred grid with
:func:`implicit3d.sample_field`, its zero level set is extracted with
marching cubes (scikit-image) and matplotlib's 3-D axes display it.

Usage::

    python scripts/gallery_3d.py                   # saves gallery_3d.png
    python scripts/gallery_3d.py --out my_file.png
    python scripts/gallery_3d.py --res 32          # faster, lower quality

Requirements: numpy, matplotlib, scikit-image
    pip install -e .[gallery]
"""
from __future__ import annotations

import argparse
import os
import sys

# Ensure the repo root (parent of scripts/) is importable regardless of cwd
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import matplotlib.pyplot as plt
import numpy as np
from mpl_toolkits.mplot3d.art3d import Poly3DCollection
from skimage import measure

from implicit3d import (
    Box, CappedCylinder, Dodecahedron, Field, GoursatTangle, Gyroid, Icosahedron,
    MobiusBand, Octahedron, RoundBox, RoundedCylinder, Sphere, Sphube, SuperShape,
    Torus, TrefoilTube, sample_field,
)


# ---------------------------------------------------------------------------
# Field catalogue  (label, field, half-extent of the sampled cube)
# ---------------------------------------------------------------------------

def _make_fields() -> list[tuple[str, Field, float]]:
    base_sphere = Sphere(0.3)
    base_box = Box((0.25, 0.2, 0.15))

    return [
        # --- exact primitives ---
        ("Sphere", Sphere(0.3), 0.55),
        ("Box", base_box, 0.55),
        ("RoundBox", RoundBox((0.25, 0.2, 0.15), 0.05), 0.55),
        ("CappedCylinder", CappedCylinder(0.22, 0.28), 0.55),
        ("RoundedCylinder", RoundedCylinder(0.2, 0.05, 0.25), 0.55),
        ("Torus", Torus(0.3, 0.1), 0.55),
        ("Octahedron", Octahedron(0.4), 0.55),
        # --- support-function polyhedra ---
        ("Icosahedron", Icosahedron(0.35), 0.55),
        ("Icosahedron p=8", Icosahedron(0.35, 8.0), 0.55),
        ("Dodecahedron", Dodecahedron(0.35), 0.55),
        ("Dodecahedron p=50", Dodecahedron(0.35, 50.0), 0.55),
        # --- implicit fields ---
        ("GoursatTangle", GoursatTangle(), 1.6),
        ("MobiusBand", MobiusBand(), 3.2),
        ("Sphube", Sphube(0.45, 0.9), 0.55),
        ("TrefoilTube", TrefoilTube(), 3.8),
        ("Gyroid", Gyroid(4.0, 0.3), 4.4),
        *[(f"SuperShape {name}", SuperShape.from_preset(name), 1.6)
          for name in ("sphere", "rounded-cube", "doughboy", "codevember")],
        # --- composition ---
        ("union", base_sphere.union(base_box), 0.55),
        ("subtract", base_box.subtract(base_sphere), 0.55),
        ("intersect", base_sphere.intersect(base_box), 0.55),
        ("round", base_box.round(0.06), 0.55),
        ("onion", base_sphere.onion(0.04).intersect(Box((0.6, 0.6, 0.3)).translate(0, 0, -0.3)), 0.55),
    ]


# ---------------------------------------------------------------------------
# Evaluation + marching cubes
# ---------------------------------------------------------------------------

def _extract_surface(field: Field, half: float, n: int):
    """Return (verts, faces) of the zero isosurface, or None without a crossing."""
    bounds = ((-half, half),) * 3
    with np.errstate(all="ignore"):
        vals = sample_field(field, bounds, (n, n, n))
    vals = np.nan_to_num(vals, nan=1.0, posinf=1.0, neginf=-1.0)
    # marching cubes needs at least one pos and neg value
    if vals.max() <= 0 or vals.min() >= 0:
        return None
    spacing = 2.0 * half / n
    verts, faces, _, _ = measure.marching_cubes(vals, level=0.0, spacing=(spacing,) * 3)
    # volume is z-first; map voxel coords → world (x, y, z) at cell centres
    verts = verts[:, ::-1] - half + 0.5 * spacing
    return verts, faces


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_gallery(fields, out_path: str, ncols: int = 6, res: int = 48) -> None:
    nrows = (len(fields) + ncols - 1) // ncols
    fig = plt.figure(figsize=(ncols * 3.0, nrows * 3.0), facecolor="#111111")

    _FACE_COLOR = np.array([1.0, 0.82, 0.2])   # warm gold
    _VIEW_ELEV = 20
    _VIEW_AZIM = 35

    for idx, (label, field, half) in enumerate(fields):
        ax = fig.add_subplot(nrows, ncols, idx + 1, projection="3d")
        ax.set_facecolor("#111111")
        ax.set_axis_off()
        ax.set_title(label, color="white", fontsize=6.5, pad=1)

        result = _extract_surface(field, half, res)
        if result is None:
            ax.text2D(0.5, 0.5, "no surface", ha="center", va="center",
                      color="gray", transform=ax.transAxes, fontsize=7)
            continue

        verts, faces = result
        # Face normals for diffuse shading
        tris = verts[faces]
        norms = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
        nlen = np.linalg.norm(norms, axis=1, keepdims=True)
        norms = norms / np.where(nlen > 0, nlen, 1.0)
        light = np.array([0.577, 0.577, 0.577])   # diagonal illumination
        shade = 0.3 + 0.7 * np.clip(norms @ light, 0.0, 1.0)
        mesh = Poly3DCollection(tris, facecolors=np.outer(shade, _FACE_COLOR),
                                edgecolors="none", alpha=1.0)
        ax.add_collection3d(mesh)

        ax.set_xlim(-half, half); ax.set_ylim(-half, half); ax.set_zlim(-half, half)
        ax.set_box_aspect([1, 1, 1])
        ax.view_init(elev=_VIEW_ELEV, azim=_VIEW_AZIM)

    for idx in range(len(fields), nrows * ncols):
        ax = fig.add_subplot(nrows, ncols, idx + 1, projection="3d")
        ax.set_visible(False)

    fig.suptitle("implicit3d — field gallery", color="white", fontsize=13, y=1.002)
    plt.tight_layout(pad=0.3)
    fig.savefig(out_path, dpi=180, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    print(f"Saved: {out_path}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render all implicit3d fields to a single PNG gallery."
    )
    parser.add_argument("--out", default="gallery_3d.png", help="Output PNG path")
    parser.add_argument("--cols", type=int, default=6, help="Number of columns (default 6)")
    parser.add_argument("--res", type=int, default=48,
                        help="Grid resolution per axis (default 48, use 96+ for highest quality)")
    args = parser.parse_args()

    render_gallery(_make_fields(), args.out, ncols=args.cols, res=args.res)


if __name__ == "__main__":
    main()
