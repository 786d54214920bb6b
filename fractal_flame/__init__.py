"""Fractal Flame: stochastic IFS renderer for fractal flame images.

This package iterates a point through a set of weighted affine + nonlinear
maps (the chaos game), accumulates per-pixel color and density statistics,
and tone-maps them into an RGBA pixel buffer.

Architecture layers (strict one-way dependency):
    scripts/ → fractal_flame/renderer/ → fractal_flame/utils/

Key invariants:
    - Logical plane is [-2, 2]² with +Y up; pixel grid has +Y down
    - Colors are floats in [0,1] until the final byte conversion
    - One histogram and one run state per render (nothing shared across calls)
    - All randomness flows from one injectable generator per render
    - YAML-only configs (flame.v1 schema)
"""

__version__ = "1.0.0"
