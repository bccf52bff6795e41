# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
# Copyright (c) 2019 Tor Aksel N. Heirung
#
# SPDX-License-Identifier: AGPL-3.0-or-later
# SPDX-License-Identifier: MIT

# Code purpose:  Define the Polygon class, a support oracle with exact support points at the vertices

from __future__ import annotations

import warnings
from typing import Any, Optional, Sequence

import cvxpy as cp
import numpy as np

from pypolyapprox.common import (
    convex_set_distance,
    convex_set_extreme,
    convex_set_project,
    convex_set_support,
    is_ellipsoid,
    is_polygon,
    minimize,
    sanitize_Ab,
    sanitize_V,
)
from pypolyapprox.common.constants import (
    DEFAULT_CVXPY_ARGS_LP,
    DEFAULT_CVXPY_ARGS_SOCP,
    DIR_EAST,
    DIR_NORTH,
    DIR_SOUTH,
    DIR_WEST,
    PYPOLYAPPROX_ZERO,
)
from pypolyapprox.Polygon.vertex_halfspace_enumeration import (
    determine_H_rep,
    determine_V_rep,
    minimize_H_rep,
    order_vertices_counterclockwise,
)


class Polygon:
    r"""Bounded convex polygon in :math:`\mathbb{R}^2`, held in halfspace representation (H-Rep)
    :math:`\{x\ |\ Ax \leq b\}`, in vertex representation (V-Rep) :math:`\text{ConvexHull}(v_i)`, or in both.

    A polygon is constructed from exactly **one** of the following keyword combinations:

    #. (A, b) for the H-Rep. The rows are kept in the given order.
    #. V for the V-Rep. Interior points and duplicates are dropped, and the vertices are ordered counter-clockwise.
    #. (lb, ub) for the rectangle :math:`\{x\ |\ lb \leq x \leq ub\}`.
    #. (c, h) for the rectangle centered at c with (scalar or vector) half-sides h.
    #. dim=2, or nothing, for the empty polygon.

    Args:
        A (Sequence[Sequence[float]] | np.ndarray, optional): Inequality coefficients, one inequality per row.
        b (Sequence[float] | np.ndarray, optional): Inequality constants.
        V (Sequence[Sequence[float]] | np.ndarray, optional): Points whose convex hull is the polygon, one per row.
        lb (Sequence[float] | np.ndarray, optional): Lower bounds of the rectangle.
        ub (Sequence[float] | np.ndarray, optional): Upper bounds of the rectangle.
        c (Sequence[float] | np.ndarray, optional): Center of the rectangle.
        h (float | Sequence[float] | np.ndarray, optional): Half-sides of the rectangle.
        dim (int, optional): Must be 2.

    Raises:
        ValueError: When the keywords are not one of the combinations above, or the arguments are not two-dimensional
        ValueError: When (A, b) has fewer than three informative inequalities. Vertex enumeration detects the
            remaining unbounded cases.
        UserWarning: When rows of (A, b) with all zeros in A or np.inf in b are removed
    """

    def __init__(self, **kwargs: Any) -> None:
        """Constructor for Polygon"""
        self._A, self._b, self._V = np.empty((0, 2)), np.empty((0,)), np.empty((0, 2))
        self._in_H_rep, self._in_V_rep = False, False
        self._is_empty: Optional[bool] = True
        self._cvxpy_args_lp = DEFAULT_CVXPY_ARGS_LP
        self._cvxpy_args_socp = DEFAULT_CVXPY_ARGS_SOCP

        keywords = set(kwargs)
        if keywords <= {"dim"}:
            if kwargs.get("dim", 2) != 2:
                raise ValueError(f"Polygon is two-dimensional. Got dim: {kwargs['dim']}")
        elif keywords == {"V"}:
            V = sanitize_V(kwargs["V"])
            if V.shape[1] != 2:
                raise ValueError(f"Expected V to have 2 columns. Got V with shape {V.shape}")
            elif V.shape[0] > 0:
                self._set_V_rep(order_vertices_counterclockwise(V))
        elif keywords == {"A", "b"}:
            self._set_H_rep(kwargs["A"], kwargs["b"])
        elif keywords == {"lb", "ub"}:
            self._set_rectangle(kwargs["lb"], kwargs["ub"])
        elif keywords == {"c", "h"}:
            try:
                c = np.atleast_1d(np.squeeze(kwargs["c"])).astype(float)
                h = np.squeeze(kwargs["h"]).astype(float)
            except (TypeError, ValueError) as err:
                raise ValueError(f"Expected c and h to be float arrays. Got c: {kwargs['c']} and h: {kwargs['h']}") from err
            if h.ndim > 1 or (h.ndim == 1 and h.shape != c.shape):
                raise ValueError(f"Expected h to be a scalar or to match c. Got c: {c.shape} and h: {h.shape}")
            self._set_rectangle(c - h, c + h)
        else:
            raise ValueError(f"Expected one of (A, b), V, (lb, ub), (c, h), or dim. Got {sorted(keywords)}")

    def _set_H_rep(
        self,
        A: Sequence[Sequence[float]] | np.ndarray,
        b: Sequence[float] | np.ndarray,
        keep_V_rep: bool = False,
        enable_warning: bool = True,
    ) -> None:
        """Protected method to set the H-Rep from (A, b), dropping uninformative rows. An inequality 0 <= b_i with
        b_i < 0 (or any b_i = -np.inf) makes the polygon empty."""
        A, b = sanitize_Ab(A, b)
        if A.shape[1] != 2:
            raise ValueError(f"Expected A to have 2 columns. Got A with shape {A.shape}")
        informative_rows = (np.abs(A) > PYPOLYAPPROX_ZERO).any(axis=1) & (b < np.inf)
        if enable_warning and not informative_rows.all():
            warnings.warn("Removed some rows in (A, b) with all zeros in A or np.inf in b!", UserWarning)
        trivially_infeasible = (b == -np.inf).any() or (b[~informative_rows] < -PYPOLYAPPROX_ZERO).any()
        A, b = A[informative_rows], b[informative_rows]
        if not trivially_infeasible and A.shape[0] < 3:
            raise ValueError(f"Polygon is not bounded! Expected at least 3 inequalities. Got {A.shape[0]:d}.")
        self._A, self._b, self._in_H_rep = A, b, True
        if trivially_infeasible:
            self._set_empty(keep_H_rep=True)
        elif not keep_V_rep:
            self._V, self._in_V_rep, self._is_empty = np.empty((0, 2)), False, None

    def _set_V_rep(self, V: np.ndarray, keep_H_rep: bool = False) -> None:
        """Protected method to set the V-Rep from counter-clockwise vertices"""
        self._V, self._in_V_rep, self._is_empty = V, True, False
        if not keep_H_rep:
            self._A, self._b, self._in_H_rep = np.empty((0, 2)), np.empty((0,)), False

    def _set_rectangle(self, lb: Any, ub: Any) -> None:
        """Protected method to set both representations of the rectangle {lb <= x <= ub}. The inequalities follow the
        East, North, West, South order."""
        try:
            lb = np.atleast_1d(np.squeeze(lb)).astype(float)
            ub = np.atleast_1d(np.squeeze(ub)).astype(float)
        except (TypeError, ValueError) as err:
            raise ValueError(f"Expected lb and ub to be float vectors. Got lb: {lb} and ub: {ub}") from err
        if lb.shape != (2,) or ub.shape != (2,):
            raise ValueError(f"Expected lb and ub to be vectors of length 2. Got {lb.shape} and {ub.shape}")
        elif (lb > ub).any():
            return
        elif not (np.isfinite(lb).all() and np.isfinite(ub).all()):
            raise ValueError("Polygon is not bounded! Expected finite lb and ub.")
        self._set_H_rep(np.vstack((DIR_EAST, DIR_NORTH, DIR_WEST, DIR_SOUTH)), np.hstack((ub, -lb)))
        corners = np.array([[ub[0], lb[1]], [ub[0], ub[1]], [lb[0], ub[1]], [lb[0], lb[1]]])
        self._set_V_rep(order_vertices_counterclockwise(corners), keep_H_rep=True)

    def _set_empty(self, keep_H_rep: bool = False) -> None:
        """Protected method to mark the polygon as empty"""
        self._V, self._in_V_rep, self._is_empty = np.empty((0, 2)), False, True
        if not keep_H_rep:
            self._A, self._b, self._in_H_rep = np.empty((0, 2)), np.empty((0,)), False

    @property
    def dim(self) -> int:
        """Dimension of the polygon (always 2)"""
        return 2

    @property
    def A(self) -> np.ndarray:
        """Inequality coefficients of the H-Rep (a halfspace enumeration is performed if required)"""
        if not self.in_H_rep:
            self.determine_H_rep()
        return self._A

    @property
    def b(self) -> np.ndarray:
        """Inequality constants of the H-Rep (a halfspace enumeration is performed if required)"""
        if not self.in_H_rep:
            self.determine_H_rep()
        return self._b

    @property
    def V(self) -> np.ndarray:
        """Vertices in counter-clockwise order, one per row (a vertex enumeration is performed if required)"""
        if not self.in_V_rep and self.in_H_rep:
            self.determine_V_rep()
        return self._V

    @property
    def n_halfspaces(self) -> int:
        """Number of inequalities in the H-Rep"""
        return self.A.shape[0]

    @property
    def n_vertices(self) -> int:
        """Number of vertices"""
        return self.V.shape[0]

    @property
    def is_empty(self) -> bool:
        """Check if the polygon is empty. A polygon in H-Rep alone requires a vertex enumeration."""
        if self._is_empty is None:
            self.determine_V_rep()
        return bool(self._is_empty)

    @property
    def is_full_dimensional(self) -> bool:
        """Check if the polygon has a non-empty interior (at least three vertices)"""
        return not self.is_empty and self.n_vertices >= 3

    @property
    def is_singleton(self) -> bool:
        """Check if the polygon is a single point"""
        return not self.is_empty and self.n_vertices == 1

    @property
    def in_H_rep(self) -> bool:
        """Check if the H-Rep is available"""
        return self._in_H_rep

    @property
    def in_V_rep(self) -> bool:
        """Check if the V-Rep is available"""
        return self._in_V_rep

    @property
    def cvxpy_args_lp(self) -> dict[str, Any]:
        """CVXPY arguments used for the linear programs"""
        return self._cvxpy_args_lp

    @cvxpy_args_lp.setter
    def cvxpy_args_lp(self, value: dict[str, Any]) -> None:
        self._cvxpy_args_lp = value

    @property
    def cvxpy_args_socp(self) -> dict[str, Any]:
        """CVXPY arguments used for the second-order cone programs (projections in 2-norm)"""
        return self._cvxpy_args_socp

    @cvxpy_args_socp.setter
    def cvxpy_args_socp(self, value: dict[str, Any]) -> None:
        self._cvxpy_args_socp = value

    def containment_constraints(self, x: cp.Variable) -> tuple[list[cp.Constraint], Optional[cp.Variable]]:
        """Get CVXPY constraints for x (a cvxpy.Variable of length 2) to lie in the polygon.

        Raises:
            ValueError: When the polygon is empty

        Returns:
            tuple: (constraint_list, theta). The H-Rep is used when available, and theta is then None. Otherwise, theta
            is the cvxpy.Variable of convex combination weights of the vertices.
        """
        if self.is_empty:
            raise ValueError("Can not define containment constraints for an empty polygon!")
        elif self.in_H_rep:
            return [self.A @ x <= self.b], None
        theta = cp.Variable((self.n_vertices,), nonneg=True)
        return [x == self.V.T @ theta, cp.sum(theta) == 1], theta

    minimize = minimize

    def _compute_support_function_single_eta(self, eta: np.ndarray) -> tuple[float, np.ndarray]:
        """Private method to evaluate the support function at the vertices. Ties go to the first vertex in
        counter-clockwise order."""
        vertex_evaluations = self.V @ eta
        support_index = int(np.argmax(vertex_evaluations))
        return float(vertex_evaluations[support_index]), self.V[support_index]

    support = convex_set_support
    extreme = convex_set_extreme
    project = convex_set_project
    distance = convex_set_distance

    def contains(self, Q: Any) -> Any:
        r"""Check if a set (Polygon or Ellipsoid) or points (one per row) lie in the polygon.

        Args:
            Q (array_like | Polygon | Ellipsoid): Set or points to test

        Raises:
            ValueError: When Q is not two-dimensional

        Returns:
            bool | numpy.ndarray[bool]: For a set, True if and only if :math:`\rho_Q(a_i) \leq b_i` for every row
            :math:`(a_i, b_i)` of the H-Rep. For points, one flag per point (a bool for a single point), testing
            :math:`Ax \leq b` up to PYPOLYAPPROX_ZERO.
        """
        if is_polygon(Q) or is_ellipsoid(Q):
            if Q.dim != self.dim:
                raise ValueError(f"Expected a two-dimensional set. Got Q.dim: {Q.dim:d}")
            elif Q.is_empty:
                return True
            elif self.is_empty:
                return False
            return bool(np.all(Q.support(self.A)[0] <= self.b + PYPOLYAPPROX_ZERO))
        try:
            points = np.atleast_2d(Q).astype(float)
        except (TypeError, ValueError) as err:
            raise ValueError(f"Expected Q to be a set or a float array of points. Got {type(Q)}!") from err
        if points.ndim != 2 or points.shape[1] != self.dim:
            raise ValueError(f"Expected points with {self.dim:d} columns. Got points with shape {points.shape}")
        elif self.is_empty:
            containment_flags = np.zeros((points.shape[0],), dtype=bool)
        else:
            containment_flags = np.all(points @ self.A.T <= self.b + PYPOLYAPPROX_ZERO, axis=1)
        return containment_flags if points.shape[0] > 1 else bool(containment_flags[0])

    __contains__ = contains

    def __le__(self, Q: Any) -> Any:
        """self <= Q is Q.contains(self)"""
        return Q.contains(self) if is_polygon(Q) else NotImplemented

    def __ge__(self, Q: Any) -> Any:
        """self >= Q is self.contains(Q)"""
        return self.contains(Q) if is_polygon(Q) or is_ellipsoid(Q) else NotImplemented

    def __eq__(self, Q: object) -> Any:
        """Two polygons are equal when each contains the other"""
        if not is_polygon(Q):
            return NotImplemented
        return self <= Q and self >= Q

    determine_H_rep = determine_H_rep
    determine_V_rep = determine_V_rep
    minimize_H_rep = minimize_H_rep

    def __str__(self) -> str:
        if self.is_empty:
            return "Polygon (empty) in R^2"
        elif self.in_H_rep and self.in_V_rep:
            return "Polygon in R^2 in H-Rep and V-Rep"
        elif self.in_H_rep:
            return "Polygon in R^2 in only H-Rep"
        return "Polygon in R^2 in only V-Rep"

    def __repr__(self) -> str:
        repr_str = str(self)
        if self.in_H_rep:
            repr_str += f"\n\tIn H-rep: {self.n_halfspaces:d} inequalities"
        if self.in_V_rep:
            repr_str += f"\n\tIn V-rep: {self.n_vertices:d} {'vertex' if self.n_vertices == 1 else 'vertices'}"
        return repr_str
