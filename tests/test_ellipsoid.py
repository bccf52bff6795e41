# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
#
# SPDX-License-Identifier: AGPL-3.0-or-later

# Code purpose: Test the Ellipsoid class

import unittest

import cvxpy as cp
import numpy as np
import pytest

from pypolyapprox import PYPOLYAPPROX_ZERO, Ellipsoid
from pypolyapprox.common.constants import DEFAULT_CVXPY_ARGS_SOCP, TESTING_CVXPY_TOLERANCE


class TestEllipsoid(unittest.TestCase):
    def test___init__(self):
        E = Ellipsoid(c=np.zeros((2,)), Q=np.eye(2))
        assert E.is_full_dimensional
        assert not E.is_empty
        E = Ellipsoid(c=np.zeros((2,)), G=np.ones((2, 2)))
        assert not E.is_full_dimensional
        assert not E.is_singleton
        E = Ellipsoid(c=np.zeros((2,)), G=np.eye(2))
        assert E.is_full_dimensional
        assert E.latent_dim == 2
        # Full-dimensional ellipsoid unnecessarily complicated
        E1 = Ellipsoid(c=np.zeros((2,)), G=np.hstack((np.eye(2), np.zeros((2, 1)))))
        assert E1.is_full_dimensional
        assert np.isclose(E1.G, E.G).all()
        assert np.isclose(E1.c, E.c).all()
        assert np.isclose(E1.Q, E.Q).all()

        # Permuted generator
        E = Ellipsoid(c=np.zeros((2,)), G=[[0, 1], [1, 0]])
        assert E.dim == 2
        assert E.is_full_dimensional
        assert np.allclose(E.G @ E.G.T, E.Q)

        E = Ellipsoid(c=np.zeros((3,)), G=np.ones((3, 2)))
        assert E.dim == 3
        assert not E.is_full_dimensional

        E = Ellipsoid(c=np.zeros((3,)), G=np.zeros((3, 2)))
        assert E.is_singleton
        assert E.latent_dim == 0

        # Singletons
        E1 = Ellipsoid(c=np.zeros((2,)))
        E2 = Ellipsoid(c=np.zeros((2,)), r=0)
        E3 = Ellipsoid(c=np.zeros((2,)), G=PYPOLYAPPROX_ZERO / 10 * np.eye(2))
        E4 = Ellipsoid(c=np.zeros((2,)), Q=((PYPOLYAPPROX_ZERO / 10) ** 2) * np.eye(2))
        for E in [E1, E2, E3, E4]:
            assert E.dim == 2
            assert E.is_singleton
            assert not E.is_full_dimensional
            assert E.G.shape == (2, 0)

        E2 = Ellipsoid(c=np.zeros((2,)), r=2)
        E3 = Ellipsoid(c=np.zeros((2,)), G=2 * np.eye(2))
        E4 = Ellipsoid(c=np.zeros((2,)), Q=4 * np.eye(2))
        for E in [E2, E3, E4]:
            assert E.is_full_dimensional
            assert not E.is_singleton
            assert np.allclose(E.Q, 4 * np.eye(2))
            assert np.allclose(E.G, 2 * np.eye(2))

        # Q must be positive definite
        with pytest.raises(ValueError):
            Ellipsoid(c=np.zeros((2,)), Q=[[1, 0], [0, -1]])
        with pytest.raises(ValueError):
            Ellipsoid(c=np.zeros((2,)), Q=[[1, 0], [0, 0]])
        with pytest.raises(ValueError):
            Ellipsoid(c=np.zeros((2,)), Q=[[1, 1], [0, 1]])
        # G must have self.dim rows
        with pytest.raises(ValueError):
            Ellipsoid(c=np.zeros((3,)), G=[[1, 0], [0, 0]])
        # Can't do 2D center
        with pytest.raises(ValueError):
            Ellipsoid(c=np.eye(2), Q=np.eye(2))
        with pytest.raises(ValueError):
            Ellipsoid(c=np.zeros((2,)), Q=np.zeros((2,)))
        with pytest.raises(ValueError):
            Ellipsoid(c=np.zeros((2,)), Q=np.eye(3))
        with pytest.raises(ValueError):
            Ellipsoid(c=np.zeros((2,)), Q=np.eye(2), G=np.eye(2))
        with pytest.raises(TypeError):
            Ellipsoid(c=np.zeros((2,)), A=np.eye(2))
        with pytest.raises(ValueError):
            Ellipsoid(c="char", r=1)
        with pytest.raises(TypeError):
            Ellipsoid(m=[1, 0])
        with pytest.raises(ValueError):
            Ellipsoid(c=(0, 0), r=-1)

    def test_disk_and_support_function(self):
        radius = 5
        disk = Ellipsoid(c=(0, 0), r=radius)
        for support_direction in ((0, 1), (0, -1), (1, 0), (-1, 0)):
            assert disk.support(support_direction)[0] == radius
        assert np.allclose(disk.extreme([[3, 4], [-1, 0]]), [[3, 4], [-5, 0]])

        ellipse = Ellipsoid(c=(1, 2), Q=np.diag((4, 1)))
        assert np.allclose(ellipse.support([[1, 0], [0, -1]])[0], [3, -1])
        assert np.allclose(ellipse.extreme([1, 0]), [[3, 2]])

        low_dim_disk = Ellipsoid(c=(1, 0), G=[[1, 1], [1, 1]])
        assert np.isclose(low_dim_disk.support([1, 1])[0], 1 + 2 * np.sqrt(2))
        # Orthogonal to the direction
        assert np.isclose(low_dim_disk.support([1, -1])[0], 1)

        singleton = Ellipsoid(c=(1, 0))
        assert np.isclose(singleton.support([1, -1])[1], [1, 0]).all()

        with pytest.raises(ValueError):
            disk.support([1, 0, 0])

    def test_project_distance(self):
        E = Ellipsoid(c=[0, 0], r=2)
        assert np.isclose(E.distance([3, 0]), 1, atol=TESTING_CVXPY_TOLERANCE)
        assert np.allclose(E.project([3, 0])[0], [[2, 0]], atol=TESTING_CVXPY_TOLERANCE)
        assert np.isclose(E.project([3, 0], p=1)[1], 1, atol=TESTING_CVXPY_TOLERANCE)
        assert np.isclose(E.project([3, 0], p="inf")[1], 1, atol=TESTING_CVXPY_TOLERANCE)

        E = Ellipsoid(c=[0, 1])
        assert np.isclose(E.project([1, 1])[0], E.c, atol=TESTING_CVXPY_TOLERANCE).all()

        with pytest.raises(ValueError):
            E.project([3, 0], p="WHAT")

        E.cvxpy_args_socp = {"solver": "WRONG_SOLVER"}
        with pytest.raises(NotImplementedError):
            E.project([3, 0])

        E.cvxpy_args_lp = {"solver": "WRONG_SOLVER"}
        with pytest.raises(NotImplementedError):
            E.project([3, 0], p=1)

    def test_containment_constraints_minimize(self):
        E = Ellipsoid(c=[1, 0], r=2)
        x = cp.Variable((2,))
        minimizer, minimum_value, status = E.minimize(x, x[0], DEFAULT_CVXPY_ARGS_SOCP)
        assert status in [cp.OPTIMAL, cp.OPTIMAL_INACCURATE]
        assert np.isclose(minimum_value, -1, atol=TESTING_CVXPY_TOLERANCE)
        assert np.allclose(minimizer, [-1, 0], atol=TESTING_CVXPY_TOLERANCE)
        constraints, xi = E.containment_constraints(x)
        assert len(constraints) == 2
        assert xi.size == 2
        constraints, xi = Ellipsoid(c=[1, 0]).containment_constraints(x)
        assert xi is None
        assert len(constraints) == 1

    def test_print(self):
        E = Ellipsoid(c=[0, 0], r=2)
        assert str(E) == "Ellipsoid in R^2"
        assert "full-dimensional" in repr(E)
        assert "singleton" in repr(Ellipsoid(c=[0, 0]))
        assert "degenerate" in repr(Ellipsoid(c=[0, 0], G=[[1, 0], [0, 0]]))
        assert E.cvxpy_args_socp == DEFAULT_CVXPY_ARGS_SOCP
