# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
#
# SPDX-License-Identifier: AGPL-3.0-or-later

# Code purpose:  Define the methods to compute polygonal overapproximations of two-dimensional convex sets

from __future__ import annotations

from typing import Any

import numpy as np

from pypolyapprox.Approximations.iterative_refinement import _check_convex_set, approximate
from pypolyapprox.common import is_polygon, support_point
from pypolyapprox.common.constants import DIR_EAST, DIR_NORTH, DIR_SOUTH, DIR_WEST
from pypolyapprox.Polygon import Polygon


def overapproximate(cvx_set: Any, epsilon: float = np.inf, **kwargs: Any) -> Polygon:
    r"""Compute an epsilon-close polygonal overapproximation of a two-dimensional convex set in H-Rep.

    Args:
        cvx_set (object): Non-empty convex set in :math:`\mathbb{R}^2` with a support oracle.
        epsilon (float, optional): Error bound. Defaults to np.inf, which yields the four halfspaces along the cardinal
            directions.
        kwargs: Additional keyword arguments (tol, dtype, verbose) passed to
            :meth:`pypolyapprox.Approximations.iterative_refinement.approximate`.

    Returns:
        Polygon: Polygon in H-Rep containing cvx_set, with one inequality per local approximation in counter-clockwise
        order.
    """
    return approximate(cvx_set, epsilon, **kwargs).to_half_space_representation()


def box_approximation(cvx_set: Any) -> Polygon:
    r"""Compute the smallest axis-aligned rectangle containing a two-dimensional convex set.

    Args:
        cvx_set (object): Non-empty convex set in :math:`\mathbb{R}^2` with a support oracle.

    Raises:
        ValueError: When cvx_set is not two-dimensional or is empty

    Returns:
        Polygon: Axis-aligned rectangle :math:`\{x\ |\ lb \leq x \leq ub\}` in H-Rep and V-Rep.

    Notes:
        The bounds are given by the support points along the cardinal directions,
        :math:`ub_i = e_i^\top \nu_{\mathcal{S}}(e_i)` and :math:`lb_i = e_i^\top \nu_{\mathcal{S}}(-e_i)`.
    """
    _check_convex_set(cvx_set)
    ub = np.array([support_point(cvx_set, DIR_EAST)[0], support_point(cvx_set, DIR_NORTH)[1]])
    lb = np.array([support_point(cvx_set, DIR_WEST)[0], support_point(cvx_set, DIR_SOUTH)[1]])
    return Polygon(lb=lb, ub=ub)


def overapproximation_error(cvx_set: Any, polygon: Polygon) -> float:
    r"""Compute the Hausdorff distance between a convex set and a polygon containing it.

    Args:
        cvx_set (object): Non-empty convex set in :math:`\mathbb{R}^2` that implements :meth:`distance`.
        polygon (Polygon): Polygon containing cvx_set.

    Raises:
        ValueError: When polygon is not a non-empty Polygon
        NotImplementedError: Unable to solve the projection problems using CVXPY

    Returns:
        float: Hausdorff distance :math:`\max_{x\in\mathcal{P}} \min_{y\in\mathcal{S}} \|x - y\|_2`.

    Notes:
        Since the distance to a convex set is a convex function, its maximum over the polygon is attained at one of the
        vertices. Consequently, we solve one projection problem (see :meth:`project`) per vertex of the polygon. When
        polygon does not contain cvx_set, the returned value is only the one-sided distance from polygon to cvx_set.
    """
    if not is_polygon(polygon):
        raise ValueError(f"Expected polygon to be a Polygon. Got {type(polygon)}!")
    elif polygon.is_empty:
        raise ValueError("Expected polygon to be non-empty!")
    return float(np.max(cvx_set.distance(polygon.V)))
