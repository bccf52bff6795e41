# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
# Copyright (c) 2019 Tor Aksel N. Heirung
#
# SPDX-License-Identifier: AGPL-3.0-or-later
# SPDX-License-Identifier: MIT

# Code purpose:  Define the methods for vertex-halfspace enumeration for the Polygon class
# Coverage: This file has 2 untested statements to handle unexpected errors from pycddlib

from __future__ import annotations

from typing import TYPE_CHECKING

import cdd  # pycddlib -- for vertex enumeration from H-representation
import numpy as np
from scipy.spatial import ConvexHull  # for ordering and pruning vertices

from pypolyapprox.common.constants import DIR_EAST, DIR_NORTH, DIR_SOUTH, DIR_WEST, PYPOLYAPPROX_ZERO

if TYPE_CHECKING:
    from pypolyapprox.Polygon import Polygon


def get_cdd_polyhedron_from_Ab(A: np.ndarray, b: np.ndarray) -> cdd.Polyhedron:
    """Get CDD polyhedron in inequality form from given (A, b)

    Args:
        A (numpy.ndarray): Inequality coefficient matrix A
        b (numpy.ndarray): Inequality coefficient vector b

    Returns:
        cdd.Polyhedron: CDD Polyhedron
    """
    b_mA = np.hstack((np.array([b]).T, -A))
    H_cdd = cdd.matrix_from_array(b_mA.tolist(), rep_type=cdd.RepType.INEQUALITY)
    return cdd.polyhedron_from_matrix(H_cdd)


def determine_V_rep(self: Polygon) -> None:
    r"""Determine the vertex representation from a given halfspace representation of the polygon.

    Raises:
        ValueError: Vertex enumeration yields rays, which indicates that the polygon is unbounded. Numerical issues may
            also be a culprit.

    Notes:
        We use cdd for the vertex enumeration. cdd uses the halfspace representation :math:`[b, -A]` where :math:`b - Ax
        \geq 0  \Leftrightarrow Ax \leq b`. The enumerated vertices are pruned and ordered counter-clockwise using
        :meth:`order_vertices_counterclockwise`. An infeasible (A, b) yields an empty polygon.
    """
    if self.in_V_rep or self._is_empty:
        return
    try:
        cdd_polyhedron = get_cdd_polyhedron_from_Ab(self._A, self._b)
        tV = np.array(cdd.copy_generators(cdd_polyhedron).array)
    except RuntimeError as err:  # pragma: no cover
        raise ValueError("Computation of V-rep failed due to numerical inconsistency in (A, b)!") from err
    if tV.size == 0:
        self._set_empty(keep_H_rep=True)
    elif (tV[:, 0] == 0).any():
        raise ValueError("Vertex enumeration yielded rays! Possibly due to numerical issues or unbounded polygon!")
    else:
        self._set_V_rep(order_vertices_counterclockwise(tV[:, 1:]), keep_H_rep=True)


def determine_H_rep(self: Polygon) -> None:
    r"""Determine the halfspace representation from a given vertex representation of the polygon.

    Notes:
        The vertices are kept in counter-clockwise order, so each edge :math:`[v_i, v_{i+1}]` contributes the
        inequality :math:`n_i^\top x \leq n_i^\top v_i` with the unit outward normal :math:`n_i` obtained by rotating
        the edge direction by -90 degrees. A singleton is described by four axis-aligned inequalities, and a segment by
        two opposite inequalities along its normal and two caps along its direction.
    """
    if self.in_H_rep or self._is_empty:
        return
    V = self._V
    if V.shape[0] == 1:
        A = np.vstack((DIR_EAST, DIR_NORTH, DIR_WEST, DIR_SOUTH))
        b = A @ V[0]
    elif V.shape[0] == 2:
        tangent = (V[1] - V[0]) / np.linalg.norm(V[1] - V[0])
        normal = np.array([tangent[1], -tangent[0]])
        A = np.vstack((normal, tangent, -normal, -tangent))
        b = np.array([normal @ V[0], tangent @ V[1], -normal @ V[0], -tangent @ V[0]])
    else:
        edges = np.roll(V, -1, axis=0) - V
        normals = np.vstack((edges[:, 1], -edges[:, 0])).T
        A = normals / np.linalg.norm(normals, axis=1, keepdims=True)
        b = np.sum(A * V, axis=1)
    self._set_H_rep(A, b, keep_V_rep=True)


def minimize_H_rep(self: Polygon) -> None:
    r"""Remove any redundant inequalities from the halfspace representation of the polygon, preserving the order of the
    remaining inequalities.

    Notes:
        For a full-dimensional polygon, an inequality is irredundant if and only if it is tight at two distinct
        vertices (it supports an edge). Inequalities that repeat an earlier (normalized) inequality are dropped. For
        polygons that are not full-dimensional, the halfspace representation is recomputed from the vertices.
    """
    if self.is_empty:
        return
    V = self.V  # determines V-rep if not determined
    if not self.is_full_dimensional:
        self._in_H_rep = False
        self.determine_H_rep()
        return
    A, b = self.A, self.b
    row_norms = np.linalg.norm(A, axis=1)
    A_normalized, b_normalized = A / row_norms[:, None], b / row_norms
    keep_rows = []
    for row_index in range(A.shape[0]):
        slack = np.abs(V @ A_normalized[row_index] - b_normalized[row_index])
        n_tight_vertices = np.count_nonzero(slack <= PYPOLYAPPROX_ZERO)
        duplicate = any(
            np.allclose(A_normalized[row_index], A_normalized[kept_index], atol=PYPOLYAPPROX_ZERO)
            and abs(b_normalized[row_index] - b_normalized[kept_index]) <= PYPOLYAPPROX_ZERO
            for kept_index in keep_rows
        )
        if n_tight_vertices >= 2 and not duplicate:
            keep_rows.append(row_index)
    self._set_H_rep(A[keep_rows, :], b[keep_rows], keep_V_rep=True)


def order_vertices_counterclockwise(V: np.ndarray) -> np.ndarray:
    """Prune a vertex list to the extreme points of its convex hull, ordered counter-clockwise.

    Args:
        V (numpy.ndarray): Matrix of points (N times 2)

    Returns:
        numpy.ndarray: Extreme points (M times 2) with M <= N. For a full-dimensional hull, the rows are ordered
        counter-clockwise. For a segment, the two end points are returned, and for a single point, one row is returned.

    Notes:
        Near-duplicate points (closer than PYPOLYAPPROX_ZERO) are merged before calling qhull, and qhull is skipped
        when the points are collinear.
    """
    new_vertex_list = []
    for vertex in V:
        if all(np.linalg.norm(vertex - kept_vertex) > PYPOLYAPPROX_ZERO for kept_vertex in new_vertex_list):
            new_vertex_list.append(vertex)
    V = np.array(new_vertex_list)
    if V.shape[0] == 1:
        return V
    centered_V = V - np.mean(V, axis=0)
    if np.linalg.matrix_rank(centered_V, tol=PYPOLYAPPROX_ZERO) < 2:
        # Collinear points: keep the extremes along the principal direction
        principal_direction = np.linalg.svd(centered_V)[2][0]
        projections = centered_V @ principal_direction
        return V[[np.argmin(projections), np.argmax(projections)], :]
    # Indices of the unique vertices forming the convex hull (counter-clockwise in 2D)
    return V[ConvexHull(V).vertices, :]
