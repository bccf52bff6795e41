# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
# Copyright (c) 2019 Tor Aksel N. Heirung
#
# SPDX-License-Identifier: AGPL-3.0-or-later
# SPDX-License-Identifier: MIT

# Code purpose: Methods shared by Polygon and Ellipsoid (support oracle, projection, convex programs) and the input
# sanitization used by the polygonal approximation.

import cvxpy as cp
import numpy as np


def is_ellipsoid(Q):
    """Check if Q is an Ellipsoid (duck-typed on its latent dimension)"""
    return hasattr(Q, "latent_dim")


def is_polygon(Q):
    """Check if Q is a Polygon (duck-typed on its H-Rep flag)"""
    return hasattr(Q, "in_H_rep")


def support_point(cvx_set, direction):
    """Query the support oracle of a set along a single direction.

    Args:
        cvx_set (object): Set exposing `extreme(eta)`, which returns the support vectors along the rows of eta
        direction (array_like): Support direction. Vector of length cvx_set.dim.

    Returns:
        numpy.ndarray: A point of cvx_set maximizing direction @ x, as a 1D numpy.ndarray.

    Notes:
        The returned point is as precise as the set representation provides (closed-form for ellipsoids and vertices
        for polygons). The oracle is assumed to be deterministic for a given (cvx_set, direction).
    """
    return np.atleast_2d(cvx_set.extreme(direction))[0]


def convex_set_support(self, eta):
    r"""Evaluate the support function :math:`\rho(\eta)=\max_{x} \eta^\top x` and a support vector (a maximizer) of the
    set for every row of eta.

    Args:
        eta (array_like): Support directions, one per row (N times self.dim). A 1D eta is a single direction.

    Raises:
        ValueError: When the set is empty, or eta is not a float array with self.dim columns

    Returns:
        tuple: (support_function_values, support_vectors) with shapes (N,) and (N, self.dim).
    """
    if self.is_empty:
        raise ValueError("Can not evaluate the support function of an empty set!")
    try:
        eta = np.atleast_2d(eta).astype(float)
    except (TypeError, ValueError) as err:
        raise ValueError(f"Expected eta to be a float array. Got {eta}!") from err
    if eta.ndim != 2 or eta.shape[1] != self.dim:
        raise ValueError(f"Expected eta to have {self.dim:d} columns. Got eta with shape {eta.shape}!")
    evaluations = [self._compute_support_function_single_eta(single_eta) for single_eta in eta]
    return np.array([value for value, _ in evaluations]), np.array([vector for _, vector in evaluations])


def convex_set_extreme(self, eta):
    """Support vector(s) of the set along the rows of eta (see :meth:`support`)"""
    return self.support(eta)[1]


def convex_set_project(self, points, p=2):
    r"""Project points on to the set in the p-norm by solving, for each point :math:`y`, the convex program
    :math:`\min_{x\in\mathcal{S}} \|x - y\|_p` with CVXPY.

    Args:
        points (array_like): Points to project, one per row (N times self.dim).
        p (int | str, optional): Norm type, one of 1, 2, or 'inf'. Defaults to 2.

    Raises:
        ValueError: When the set is empty, p is not supported, or points do not have self.dim columns
        NotImplementedError: When CVXPY is unable to solve a projection

    Returns:
        tuple: (projected_points, distances) with shapes (N, self.dim) and (N,).
    """
    if self.is_empty:
        raise ValueError("Can not project on to an empty set!")
    elif p not in (1, 2) and str(p).lower() != "inf":
        raise ValueError(f"Expected p to be 1, 2, or 'inf'. Got {p}!")
    points = np.atleast_2d(points).astype(float)
    if points.ndim != 2 or points.shape[1] != self.dim:
        raise ValueError(f"Expected points to have {self.dim:d} columns. Got points with shape {points.shape}!")
    cvxpy_args = self.cvxpy_args_socp if p == 2 else self.cvxpy_args_lp
    projected_points, distances = [], []
    for point in points:
        x = cp.Variable((self.dim,))
        projected_point, distance, _ = self.minimize(
            x, cp.norm(point - x, p=p), cvxpy_args, task_str=f"project {np.array2string(point):s}"
        )
        projected_points.append(projected_point)
        distances.append(distance)
    return np.array(projected_points), np.array(distances)


def convex_set_distance(self, points, p=2):
    """Distance of points (one per row) to the set in the p-norm (see :meth:`project`)"""
    return self.project(points, p=p)[1]


def minimize(self, x, objective_to_minimize, cvxpy_args, task_str=""):
    """Minimize a CVXPY objective over x subject to x lying in the set.

    Args:
        x (cvxpy.Variable): Decision variable of length self.dim
        objective_to_minimize (cvxpy.Expression): Convex objective
        cvxpy_args (dict): Keyword arguments for cvxpy.Problem.solve
        task_str (str, optional): Description of the task used in error messages. Defaults to ''.

    Raises:
        NotImplementedError: When CVXPY fails or returns an unhandled status

    Returns:
        tuple: (minimizer, optimal value, status). The minimizer is a vector of NaNs and the optimal value is np.inf
        (infeasible, including an empty set) or -np.inf (unbounded) when there is no minimizer.
    """
    try:
        constraints, _ = self.containment_constraints(x)
    except ValueError:
        return np.full((self.dim,), np.nan), np.inf, cp.INFEASIBLE
    problem = cp.Problem(cp.Minimize(objective_to_minimize), constraints)
    try:
        problem.solve(**cvxpy_args)
    except cp.error.SolverError as err:
        raise NotImplementedError(f"CVXPY failed to {task_str:s}: {str(err)}") from err
    if problem.status in (cp.OPTIMAL, cp.OPTIMAL_INACCURATE):
        return x.value, problem.value, problem.status
    elif problem.status in (cp.INFEASIBLE, cp.INFEASIBLE_INACCURATE):
        return np.full((self.dim,), np.nan), np.inf, problem.status
    elif problem.status in (cp.UNBOUNDED, cp.UNBOUNDED_INACCURATE):
        return np.full((self.dim,), np.nan), -np.inf, problem.status
    raise NotImplementedError(f"CVXPY failed to {task_str:s}: unhandled status {problem.status}")


def sanitize_Ab(A, b):
    """Convert (A, b) into a 2D float array and a 1D float array with matching rows.

    Raises:
        ValueError: When (A, b) can not be converted, have mismatched rows, contain NaNs, or A contains infs

    Returns:
        tuple: (A, b) as numpy arrays
    """
    try:
        A = np.atleast_2d(A).astype(float)
        b = np.atleast_1d(np.squeeze(b)).astype(float)
    except (TypeError, ValueError) as err:
        raise ValueError(f"Expected A and b to be float arrays. Got A: {A} and b: {b}") from err
    if A.ndim != 2 or b.ndim != 1:
        raise ValueError(f"Expected A to be 2D and b to be 1D. Got A with shape {A.shape} and b with shape {b.shape}")
    elif A.shape[0] != b.shape[0]:
        raise ValueError(f"Expected A and b to have the same number of rows. Got {A.shape[0]:d} and {b.shape[0]:d}")
    elif np.isnan(A).any() or np.isnan(b).any() or np.isinf(A).any():
        raise ValueError("Expected A to be finite and b to be free from NaNs!")
    return A, b


def sanitize_V(V):
    """Convert a vertex list (one vertex per row) into a finite 2D float array.

    Raises:
        ValueError: When V can not be converted, is not 2D, or is not finite
    """
    try:
        V = np.atleast_2d(V).astype(float)
    except (TypeError, ValueError) as err:
        raise ValueError(f"Expected V to be a float array. Got {V}") from err
    if V.ndim != 2:
        raise ValueError(f"Expected V to be a 2D array. Got a {V.ndim:d}D array!")
    elif not np.isfinite(V).all():
        raise ValueError("Expected V to be free from NaNs and infs!")
    return V


def sanitize_direction(direction, dim=2, dtype=float):
    """Sanitize a single direction vector

    Args:
        direction (array_like): Direction vector
        dim (int, optional): Expected number of components. Defaults to 2.
        dtype (numpy.dtype, optional): Floating point type of the output. Defaults to float.

    Raises:
        ValueError: direction is not a finite vector with dim components

    Returns:
        numpy.ndarray: 1D numpy array of length dim
    """
    try:
        direction = np.squeeze(np.asarray(direction, dtype=dtype))
    except (TypeError, ValueError) as err:
        raise ValueError(f"Expected direction to be convertible into a 1D array of float. Got {direction}") from err
    if direction.shape != (dim,):
        raise ValueError(f"Expected direction to have shape ({dim:d},). Got {direction.shape}")
    elif not np.isfinite(direction).all():
        raise ValueError(f"Expected direction to be free from NaNs and infs. Got {np.array2string(direction):s}")
    return direction
