# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
#
# SPDX-License-Identifier: AGPL-3.0-or-later

# Code purpose: Test methods common to all sets

import cvxpy as cp
import numpy as np
import pytest

from pypolyapprox import Ellipsoid, Polygon, is_ellipsoid, is_polygon, support_point
from pypolyapprox.common import sanitize_Ab, sanitize_direction, sanitize_V
from pypolyapprox.common.constants import DEFAULT_CVXPY_ARGS_LP, TESTING_CVXPY_TOLERANCE


class SegmentOracle:
    """Support oracle of the segment between two points, without a Polygon or Ellipsoid representation"""

    dim = 2

    def __init__(self, start_point, end_point):
        self.V = np.array([start_point, end_point], dtype=float)

    def extreme(self, eta):
        eta = np.atleast_2d(eta).astype(float)
        return self.V[np.argmax(self.V @ eta.T, axis=0)]


def test_is_polygon_is_ellipsoid():
    assert is_polygon(Polygon(dim=2))
    assert not is_polygon(Ellipsoid(c=[0, 0]))
    assert is_ellipsoid(Ellipsoid(c=[0, 0]))
    assert not is_ellipsoid(Polygon(dim=2))
    assert not is_polygon(np.eye(2))
    assert not is_ellipsoid(np.eye(2))


def test_sanitize():
    A, b = sanitize_Ab([[1, 0], [0, 1]], [[1], [2]])
    assert A.shape == (2, 2)
    assert b.shape == (2,)
    with pytest.raises(ValueError):
        sanitize_Ab([[1, 0], [0, np.nan]], [1, 2])
    with pytest.raises(ValueError):
        sanitize_Ab([[1, 0], [0, np.inf]], [1, 2])
    with pytest.raises(ValueError):
        sanitize_Ab([[1, 0], [0, 1]], [1, 2, 3])
    with pytest.raises(ValueError):
        sanitize_Ab([[1, 0], [0, "a"]], [1, 2])
    with pytest.raises(ValueError):
        sanitize_Ab([[[1, 0], [0, 1]]], [1, 2])

    V = sanitize_V([1, 2])
    assert V.shape == (1, 2)
    with pytest.raises(ValueError):
        sanitize_V([[1, 2], [np.inf, 0]])
    with pytest.raises(ValueError):
        sanitize_V([[[1, 2]]])
    with pytest.raises(ValueError):
        sanitize_V("abc")

    direction = sanitize_direction([[1, 2]])
    assert direction.shape == (2,)
    assert sanitize_direction([1, 2], dtype=np.float32).dtype == np.float32
    assert sanitize_direction([1, 2, 3], dim=3).shape == (3,)
    with pytest.raises(ValueError):
        sanitize_direction([1, 2, 3])
    with pytest.raises(ValueError):
        sanitize_direction([1, np.nan])
    with pytest.raises(ValueError):
        sanitize_direction(["a", "b"])


def test_support_point():
    P = Polygon(V=[[0, 0], [2, 0], [0, 1]])
    assert np.allclose(support_point(P, [1, 0]), [2, 0])
    assert support_point(P, [1, 0]).shape == (2,)
    E = Ellipsoid(c=[1, 1], r=2)
    assert np.allclose(support_point(E, [0, -1]), [1, -1])
    assert np.allclose(support_point(E, np.array([3.0, 4.0])), [1 + 6 / 5, 1 + 8 / 5])
    # Any object with an extreme method is a support oracle
    segment = SegmentOracle([0, 0], [1, 1])
    assert np.allclose(support_point(segment, [1, 0]), [1, 1])
    assert np.allclose(support_point(segment, [-1, 0]), [0, 0])


def test_approximate_user_defined_oracle():
    from pypolyapprox import approximate

    segment = SegmentOracle([0, 0], [1, 1])
    overapproximation = approximate(segment, 0.01)
    assert all(not approximation.refinable or approximation.err <= 0.01 for approximation in overapproximation)
    P = overapproximation.to_half_space_representation()
    assert P.contains([[0, 0], [1, 1], [0.5, 0.5]]).all()
    assert not P.contains([0, 1])


def test_minimize_and_project_with_polygon_and_ellipsoid():
    x = cp.Variable((2,))
    P = Polygon(lb=[0, 0], ub=[1, 1])
    E = Ellipsoid(c=[0, 0], r=1)
    for cvx_set, expected_value in [(P, 0), (E, -np.sqrt(2))]:
        minimizer, minimum_value, _ = cvx_set.minimize(x, cp.sum(x), DEFAULT_CVXPY_ARGS_LP)
        assert np.isclose(minimum_value, expected_value, atol=TESTING_CVXPY_TOLERANCE)
        assert np.isclose(np.sum(minimizer), expected_value, atol=TESTING_CVXPY_TOLERANCE)
    # Projection of points inside and outside
    projected_points, distances = E.project([[0, 0], [2, 0]])
    assert np.allclose(projected_points, [[0, 0], [1, 0]], atol=TESTING_CVXPY_TOLERANCE)
    assert np.allclose(distances, [0, 1], atol=TESTING_CVXPY_TOLERANCE)
