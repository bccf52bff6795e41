# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
#
# SPDX-License-Identifier: AGPL-3.0-or-later

# Code purpose:  Define the Ellipsoid class, a support oracle with a closed-form support function

import cvxpy as cp
import numpy as np

from pypolyapprox.common import (
    convex_set_distance,
    convex_set_extreme,
    convex_set_project,
    convex_set_support,
    minimize,
)
from pypolyapprox.common.constants import DEFAULT_CVXPY_ARGS_LP, DEFAULT_CVXPY_ARGS_SOCP, PYPOLYAPPROX_ZERO


class Ellipsoid:
    r"""Ellipsoid :math:`\mathcal{E}=\{c + G u\ |\ \|u\|_2 \leq 1\}` with the shape matrix :math:`Q=GG^\top`.

    An ellipsoid is defined by its center c and **at most one** of the following:

    #. Q for a full-dimensional ellipsoid :math:`\{x\ |\ (x - c)^\top Q^{-1} (x - c) \leq 1\}` with a positive definite
       Q,
    #. G for a full-dimensional or a degenerate ellipsoid, where G has self.dim rows and any number of columns,
    #. r for a ball (a disk in two dimensions) of radius r.

    With c alone, the ellipsoid is the singleton :math:`\{c\}`.

    Args:
        c (array_like): Center of the ellipsoid. Vector of length self.dim.
        Q (array_like, optional): Symmetric positive definite shape matrix (self.dim times self.dim).
        G (array_like, optional): Generator matrix with self.dim rows.
        r (float, optional): Non-negative radius of a ball.

    Raises:
        ValueError: When more than one of Q, G, r is provided
        ValueError: When c is not a vector, Q is not symmetric positive definite, G does not have self.dim rows, or r
            is negative

    Notes:
        The semi-axis lengths of the ellipsoid are the square roots of the eigenvalues of Q. The ellipsoid is a
        singleton when every semi-axis length is at most PYPOLYAPPROX_ZERO (G is then stored with zero columns), and is
        full-dimensional when every semi-axis length exceeds PYPOLYAPPROX_ZERO (G is then stored as the lower-triangular
        Cholesky factor of Q).
    """

    def __init__(self, c, Q=None, G=None, r=None):
        """Constructor for Ellipsoid"""
        try:
            self._c = np.atleast_1d(np.squeeze(c)).astype(float)
        except (TypeError, ValueError) as err:
            raise ValueError(f"Expected c to be convertible into a float vector. Got {c}!") from err
        if self._c.ndim != 1:
            raise ValueError(f"Expected c to be a vector. Got c with shape {self._c.shape}!")
        if sum(arg is not None for arg in (Q, G, r)) > 1:
            raise ValueError("Expected at most one of Q, G, or r!")

        if r is not None:
            if float(r) < 0:
                raise ValueError(f"Expected r to be non-negative. Got {r}!")
            G = float(r) * np.eye(self.dim)
        elif Q is not None:
            G = self._get_cholesky_factor(Q)
        elif G is not None:
            G = np.atleast_2d(G).astype(float)
            if G.ndim != 2 or G.shape[0] != self.dim:
                raise ValueError(f"Expected G to have {self.dim:d} rows. Got G with shape {G.shape}!")
        else:
            G = np.zeros((self.dim, 0))
        self._set_generator(G)

        self._cvxpy_args_lp = DEFAULT_CVXPY_ARGS_LP
        self._cvxpy_args_socp = DEFAULT_CVXPY_ARGS_SOCP

    def _get_cholesky_factor(self, Q):
        """Protected method to validate Q and get its lower-triangular Cholesky factor"""
        Q = np.atleast_2d(Q).astype(float)
        if Q.shape != (self.dim, self.dim):
            raise ValueError(f"Expected Q to be a {self.dim:d} x {self.dim:d} matrix. Got Q with shape {Q.shape}!")
        elif not np.allclose(Q, Q.T):
            raise ValueError("Expected Q to be symmetric!")
        try:
            return np.linalg.cholesky(Q)
        except np.linalg.LinAlgError as err:
            raise ValueError("Expected Q to be positive definite! Use G for degenerate ellipsoids.") from err

    def _set_generator(self, G):
        """Protected method to set G, Q, and the extreme semi-axis lengths from a generator matrix"""
        Q = G @ G.T
        semi_axes = np.sqrt(np.clip(np.linalg.eigvalsh(Q), 0, None))
        self._largest_semi_axis, self._smallest_semi_axis = float(np.max(semi_axes)), float(np.min(semi_axes))
        if self.is_singleton:
            G, Q = np.zeros((self.dim, 0)), np.zeros((self.dim, self.dim))
        elif self.is_full_dimensional:
            G = np.linalg.cholesky(Q)
        self._G, self._Q = G, Q

    @property
    def dim(self):
        """Dimension of the ellipsoid"""
        return self._c.shape[0]

    @property
    def latent_dim(self):
        """Number of columns of G"""
        return self._G.shape[1]

    @property
    def c(self):
        """Center of the ellipsoid"""
        return self._c

    @property
    def Q(self):
        """Shape matrix of the ellipsoid"""
        return self._Q

    @property
    def G(self):
        r"""Generator matrix with :math:`GG^\top=Q`"""
        return self._G

    @property
    def is_empty(self):
        """Ellipsoids are never empty"""
        return False

    @property
    def is_full_dimensional(self):
        """Check if every semi-axis length exceeds PYPOLYAPPROX_ZERO"""
        return self._smallest_semi_axis > PYPOLYAPPROX_ZERO

    @property
    def is_singleton(self):
        """Check if every semi-axis length is at most PYPOLYAPPROX_ZERO"""
        return self._largest_semi_axis <= PYPOLYAPPROX_ZERO

    @property
    def cvxpy_args_lp(self):
        """CVXPY arguments used for the linear programs (projections in 1-norm and inf-norm)"""
        return self._cvxpy_args_lp

    @cvxpy_args_lp.setter
    def cvxpy_args_lp(self, value):
        self._cvxpy_args_lp = value

    @property
    def cvxpy_args_socp(self):
        """CVXPY arguments used for the second-order cone programs (projections in 2-norm)"""
        return self._cvxpy_args_socp

    @cvxpy_args_socp.setter
    def cvxpy_args_socp(self, value):
        self._cvxpy_args_socp = value

    def containment_constraints(self, x):
        """Get CVXPY constraints for x (a cvxpy.Variable of length self.dim) to lie in the ellipsoid.

        Returns:
            tuple: (constraint_list, xi), where xi is the latent cvxpy.Variable u of length self.latent_dim. xi is None
            for a singleton.
        """
        if self.is_singleton:
            return [x == self.c], None
        xi = cp.Variable((self.latent_dim,))
        return [x == self.c + self.G @ xi, cp.norm(xi, p=2) <= 1], xi

    minimize = minimize

    def _compute_support_function_single_eta(self, eta):
        r"""Private method to evaluate the closed-form support function and support vector
        :math:`\nu(\eta) = c + Q\eta / \|G^\top\eta\|_2`. When :math:`G^\top\eta` is negligible (eta is orthogonal to
        a degenerate ellipsoid), every point of the ellipsoid is a maximizer and the center is returned."""
        scaling = np.linalg.norm(self.G.T @ eta)
        if scaling <= PYPOLYAPPROX_ZERO:
            support_vector = self.c
        else:
            support_vector = self.c + (self.Q @ eta) / scaling
        return eta @ support_vector, support_vector

    support = convex_set_support
    extreme = convex_set_extreme
    project = convex_set_project
    distance = convex_set_distance

    def __str__(self):
        return f"Ellipsoid in R^{self.dim:d}"

    def __repr__(self):
        if self.is_full_dimensional:
            shape_str = "full-dimensional"
        elif self.is_singleton:
            shape_str = "a singleton"
        else:
            shape_str = "degenerate"
        return f"{str(self):s} (center: {np.array2string(self.c):s}, {shape_str:s})"
