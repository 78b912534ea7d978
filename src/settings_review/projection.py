"""Proyección ortogonal del punto nominal sobre una recta o un plano.

The multiplier problem for one interval has more unknowns than
observations, so the estimate is the point of the constraint set closest
to the nominal point (all multipliers equal to 1).
"""

from __future__ import annotations


def project_to_line(a: float, b: float, c: float) -> tuple[float, float]:
    """Project (1, 1) onto the line ``a*x + b*y = c``.

    Args:
        a: x coefficient.
        b: y coefficient.
        c: Right-hand side.

    Returns:
        (x, y) closest to (1, 1); (1, 1) when both coefficients are zero.
    """
    dot = a**2 + b**2
    if dot == 0.0:
        return 1.0, 1.0
    x = (b**2 - a * b + a * c) / dot
    y = (a**2 - a * b + b * c) / dot
    return x, y


def project_to_plane(
    a: float, b: float, c: float, d: float
) -> tuple[float, float, float]:
    """Project (1, 1, 1) onto the plane ``a*x + b*y + c*z = d``.

    Args:
        a: x coefficient.
        b: y coefficient.
        c: z coefficient.
        d: Right-hand side.

    Returns:
        (x, y, z) closest to (1, 1, 1); (1, 1, 1) for a zero normal vector.
    """
    dot = a**2 + b**2 + c**2
    if dot == 0.0:
        return 1.0, 1.0, 1.0
    x = (b**2 + c**2 - a * (b + c - d)) / dot
    y = (a**2 + c**2 - b * (a + c - d)) / dot
    z = (a**2 + b**2 - c * (a + b - d)) / dot
    return x, y, z
