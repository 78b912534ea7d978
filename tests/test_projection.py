from __future__ import annotations

import pytest

from settings_review.projection import project_to_line, project_to_plane


@pytest.mark.parametrize("c", [-5.0, 0.0, 2.0, 1e6])
def test_project_to_line_zero_coefficients_is_nominal(c: float) -> None:
    assert project_to_line(0.0, 0.0, c) == (1.0, 1.0)


@pytest.mark.parametrize("d", [-5.0, 0.0, 3.0, 1e6])
def test_project_to_plane_zero_normal_is_nominal(d: float) -> None:
    assert project_to_plane(0.0, 0.0, 0.0, d) == (1.0, 1.0, 1.0)


def test_project_to_line_point_already_on_line() -> None:
    x, y = project_to_line(3.0, -1.0, 2.0)
    assert x == pytest.approx(1.0)
    assert y == pytest.approx(1.0)


def test_project_to_plane_point_already_on_plane() -> None:
    x, y, z = project_to_plane(2.0, -4.0, 7.0, 5.0)
    assert (x, y, z) == pytest.approx((1.0, 1.0, 1.0))


def test_project_to_line_diagonal() -> None:
    assert project_to_line(1.0, 1.0, 4.0) == pytest.approx((2.0, 2.0))


def test_project_to_line_vertical() -> None:
    assert project_to_line(1.0, 0.0, 3.0) == pytest.approx((3.0, 1.0))


def test_project_to_plane_diagonal() -> None:
    assert project_to_plane(1.0, 1.0, 1.0, 6.0) == pytest.approx((2.0, 2.0, 2.0))


def test_project_to_plane_axis_aligned() -> None:
    assert project_to_plane(0.0, 0.0, 2.0, 4.0) == pytest.approx((1.0, 1.0, 2.0))


def test_project_to_plane_result_satisfies_constraint() -> None:
    a, b, c, d = -10.0, 40.0, 3.0, 10.0
    x, y, z = project_to_plane(a, b, c, d)
    assert a * x + b * y + c * z == pytest.approx(d)
