# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
#
# SPDX-License-Identifier: AGPL-3.0-or-later

# Code purpose:  Define the polygonal overapproximation of a two-dimensional convex set and the iterative refinement
# that computes an epsilon-close polygonal overapproximation in Hausdorff distance.

from __future__ import annotations

from typing import Any, Iterator, Optional, Sequence

import numpy as np

from pypolyapprox.Approximations.local_approximation import LocalApproximation, is_redundant, new_approx, refine
from pypolyapprox.common import sanitize_direction, support_point
from pypolyapprox.common.constants import (
    APPROXIMATION_TOL_FLOAT32,
    APPROXIMATION_TOL_FLOAT64,
    DIR_EAST,
    DIR_NORTH,
    DIR_SOUTH,
    DIR_WEST,
)
from pypolyapprox.Polygon import Polygon


def default_tolerance(dtype: Any = np.float64, scale: float = 1.0) -> float:
    """Get the tolerance used to detect coincident points and parallel lines for a floating point type.

    Args:
        dtype (numpy.dtype, optional): Floating point type. Defaults to np.float64.
        scale (float, optional): Magnitude of the coordinates, for example, the largest absolute coordinate of the
            support points. Defaults to 1.0.

    Raises:
        ValueError: When dtype is not a floating point type, or scale is not a finite scalar

    Returns:
        float: APPROXIMATION_TOL_FLOAT32 for single (or lower) precision, and APPROXIMATION_TOL_FLOAT64 otherwise (as
        defined in :py:mod:`pypolyapprox.common.constants`), multiplied by max(1, |scale|).

    Notes:
        The rounding error of a coordinate grows with its magnitude. An absolute tolerance below the rounding error at
        the scale of the set prevents the refinement from detecting coincident points.
    """
    dtype = np.dtype(dtype)
    if not np.issubdtype(dtype, np.floating):
        raise ValueError(f"Expected a floating point dtype. Got {dtype}!")
    try:
        scale = float(scale)
    except (TypeError, ValueError) as err:
        raise ValueError(f"Expected scale to be a finite scalar. Got {scale}!") from err
    if not np.isfinite(scale):
        raise ValueError(f"Expected scale to be a finite scalar. Got {scale}!")
    if dtype.itemsize <= np.dtype(np.float32).itemsize:
        base_tolerance = APPROXIMATION_TOL_FLOAT32
    else:
        base_tolerance = APPROXIMATION_TOL_FLOAT64
    return base_tolerance * max(1.0, abs(scale))


class PolygonalOverapproximation:
    r"""Polygonal overapproximation of a convex set :math:`\mathcal{S}\subset\mathbb{R}^2` as a counter-clockwise
    sequence of local approximations.

    Args:
        cvx_set (object): Convex set in :math:`\mathbb{R}^2` with a support oracle (see
            :meth:`pypolyapprox.common.support_point`). The set is not modified.
        tol (float, optional): Tolerance used to detect coincident points and parallel lines. Defaults to None, in which
            case :meth:`default_tolerance` of dtype is used.
        dtype (numpy.dtype, optional): Floating point type of the points and directions. Defaults to np.float64.

    Raises:
        ValueError: When tol is not a positive scalar

    Notes:
        The overapproximation starts empty. :meth:`approximate` seeds it with the arcs between the four cardinal support
        points and refines it in place. Each local approximation contributes the halfspace
        :math:`\{x\ |\ d_1^\top x \leq d_1^\top p_1\}` to :meth:`to_half_space_representation`.
    """

    def __init__(self, cvx_set: Any, tol: Optional[float] = None, dtype: Any = np.float64) -> None:
        """Constructor for PolygonalOverapproximation"""
        self._cvx_set = cvx_set
        self._dtype = np.dtype(dtype)
        if tol is None:
            self._tol = default_tolerance(self._dtype)
        else:
            try:
                self._tol = float(tol)
            except (TypeError, ValueError) as err:
                raise ValueError(f"Expected tol to be a positive scalar. Got {tol}!") from err
            if not self._tol > 0 or not np.isfinite(self._tol):
                raise ValueError(f"Expected tol to be a positive finite scalar. Got {tol}!")
        self._approx_list: list[LocalApproximation] = []

    @property
    def cvx_set(self) -> Any:
        """Convex set being approximated"""
        return self._cvx_set

    @property
    def tol(self) -> float:
        """Tolerance used to detect coincident points and parallel lines"""
        return self._tol

    @property
    def dtype(self) -> np.dtype:
        """Floating point type of the points and directions"""
        return self._dtype

    @property
    def approx_list(self) -> list[LocalApproximation]:
        """Local approximations in counter-clockwise order (a copy of the internal list)"""
        return list(self._approx_list)

    @property
    def n_approximations(self) -> int:
        """Number of local approximations"""
        return len(self._approx_list)

    @property
    def max_error(self) -> float:
        """Largest error among the local approximations. Zero when there are no local approximations."""
        return max((approximation.err for approximation in self._approx_list), default=0.0)

    @property
    def vertices(self) -> np.ndarray:
        """Intersection points q of the local approximations in counter-clockwise order, arranged row-wise"""
        if not self._approx_list:
            return np.empty((0, 2), dtype=self.dtype)
        return np.array([approximation.q for approximation in self._approx_list], dtype=self.dtype)

    def __len__(self) -> int:
        return len(self._approx_list)

    def __iter__(self) -> Iterator[LocalApproximation]:
        return iter(self._approx_list)

    def __getitem__(self, index: int) -> LocalApproximation:
        return self._approx_list[index]

    def add_approximation(
        self,
        p1: Sequence[float] | np.ndarray,
        d1: Sequence[float] | np.ndarray,
        p2: Sequence[float] | np.ndarray,
        d2: Sequence[float] | np.ndarray,
    ) -> LocalApproximation:
        """Append the local approximation of the arc from p1 (support point along d1) to p2 (support point along d2).

        Args:
            p1 (Sequence[float] | np.ndarray): Support point at the start of the arc
            d1 (Sequence[float] | np.ndarray): Outward direction at p1
            p2 (Sequence[float] | np.ndarray): Support point at the end of the arc
            d2 (Sequence[float] | np.ndarray): Outward direction at p2

        Raises:
            ValueError: When the points or directions are not finite 2D vectors

        Returns:
            LocalApproximation: The appended local approximation
        """
        p1, d1, p2, d2 = (sanitize_direction(x, dim=2, dtype=self.dtype) for x in (p1, d1, p2, d2))
        approximation = new_approx(self.cvx_set, p1, d1, p2, d2, self.tol)
        self._approx_list.append(approximation)
        return approximation

    def refine(self, index: int) -> tuple[LocalApproximation, LocalApproximation]:
        """Split the local approximation at index in place.

        Args:
            index (int): Position of the local approximation to split

        Raises:
            IndexError: When index is out of range
            ValueError: When the local approximation at index is not refinable

        Returns:
            tuple: The two children (child1, child2) of the split.

        Notes:
            child1 replaces the local approximation at index. child2 overwrites the local approximation at index + 1
            when it is redundant with it (see :meth:`pypolyapprox.Approximations.local_approximation.is_redundant`), and
            is inserted at index + 1 otherwise. There is no wraparound, so the last local approximation is never
            merged with the first one.
        """
        child1, child2 = refine(self.cvx_set, self._approx_list[index], self.tol)
        self._approx_list[index] = child1
        next_index = index + 1
        if next_index < len(self._approx_list) and is_redundant(child2, self._approx_list[next_index], self.tol):
            self._approx_list[next_index] = child2
        else:
            self._approx_list.insert(next_index, child2)
        return child1, child2

    def is_converged(self, epsilon: float) -> bool:
        """Check if every local approximation has error at most epsilon or is not refinable"""
        return all(approximation.err <= epsilon or not approximation.refinable for approximation in self._approx_list)

    def to_half_space_representation(self) -> Polygon:
        r"""Get the polygon described by the halfspaces :math:`d_1^\top x \leq d_1^\top p_1` of the local approximations.

        Raises:
            ValueError: When there are fewer than three local approximations

        Returns:
            Polygon: Polygon in H-Rep with one inequality per local approximation. The inequalities are in the
            (counter-clockwise) order of the local approximations, and are neither pruned nor reordered.
        """
        if len(self._approx_list) < 3:
            raise ValueError(
                f"Expected at least 3 local approximations to define a bounded polygon. Got {len(self._approx_list)}!"
            )
        A = np.array([approximation.d1 for approximation in self._approx_list], dtype=float)
        b = np.array([approximation.d1 @ approximation.p1 for approximation in self._approx_list], dtype=float)
        return Polygon(A=A, b=b)

    tohrep = to_half_space_representation

    def __str__(self) -> str:
        return f"Polygonal overapproximation with {self.n_approximations:d} local approximations"

    def __repr__(self) -> str:
        n_refinable = sum(approximation.refinable for approximation in self._approx_list)
        return (
            f"{str(self):s}\n\tMaximum error: {self.max_error:1.3e}, refinable local approximations: {n_refinable:d}"
            f"\n\tTolerance: {self.tol:1.1e} ({self.dtype.name:s})"
        )


def _sanitize_epsilon(epsilon: Any) -> float:
    """Private function to check that epsilon is a positive scalar (np.inf is allowed)"""
    try:
        epsilon_array = np.asarray(epsilon, dtype=float)
    except (TypeError, ValueError) as err:
        raise ValueError(f"Expected epsilon to be a positive scalar. Got {epsilon}!") from err
    if epsilon_array.size != 1:
        raise ValueError(f"Expected epsilon to be a positive scalar. Got epsilon with shape {epsilon_array.shape}!")
    epsilon = float(epsilon_array.reshape(-1)[0])
    if np.isnan(epsilon) or epsilon <= 0:
        raise ValueError(f"Expected epsilon to be a positive scalar. Got {epsilon}!")
    return epsilon


def _check_convex_set(cvx_set: Any) -> None:
    """Private function to check that cvx_set is a non-empty two-dimensional set with a support oracle"""
    if not hasattr(cvx_set, "extreme"):
        raise TypeError(f"Expected a set with a support oracle (extreme). Got {type(cvx_set)}!")
    dim = getattr(cvx_set, "dim", 2)
    if dim != 2:
        raise ValueError(f"Expected a two-dimensional set. Got a set with dim: {dim}!")
    elif getattr(cvx_set, "is_empty", False):
        raise ValueError("Expected a non-empty set!")


def approximate(
    cvx_set: Any,
    epsilon: float,
    tol: Optional[float] = None,
    dtype: Any = np.float64,
    verbose: bool = False,
) -> PolygonalOverapproximation:
    r"""Compute an epsilon-close polygonal overapproximation of a two-dimensional convex set in Hausdorff distance.

    Args:
        cvx_set (object): Non-empty convex set in :math:`\mathbb{R}^2` with a support oracle (see
            :meth:`pypolyapprox.common.support_point`), for example, a Polygon or an Ellipsoid.
        epsilon (float): Error bound. Must be positive. np.inf skips the refinement.
        tol (float, optional): Tolerance used to detect coincident points and parallel lines. Defaults to None, in which
            case :meth:`default_tolerance` of dtype is used, scaled by the largest absolute coordinate of the four
            seed support points.
        dtype (numpy.dtype, optional): Floating point type of the points and directions. Defaults to np.float64.
        verbose (bool, optional): If true, prints the progress of the refinement. Defaults to False.

    Raises:
        ValueError: When epsilon is not a positive scalar (zero, negative, or NaN)
        ValueError: When cvx_set is not two-dimensional or is empty
        TypeError: When cvx_set does not have a support oracle

    Returns:
        PolygonalOverapproximation: Polygonal overapproximation where every local approximation has error at most
        epsilon or is not refinable.

    Notes:
        The overapproximation is seeded with the support points along East, North, West, and South, which gives four
        arcs (East to North, North to West, West to South, and South to East). We then sweep the arcs in
        counter-clockwise order. An arc with error at most epsilon (or that is not refinable) is skipped. Otherwise, we
        split it using the support point along its chord normal (see
        :meth:`PolygonalOverapproximation.refine`), and examine the first child again. The sweep ends after the last
        arc.

        Each split costs a support oracle query for the new boundary point, and one for the error estimate of each
        child.

        The default tol grows with the magnitude of the seed support points, since the rounding error of the support
        points does. For sets far from the origin, arcs whose error is within this rounding error are not refined
        further, even when epsilon is smaller.
    """
    epsilon = _sanitize_epsilon(epsilon)
    _check_convex_set(cvx_set)
    dtype = np.dtype(dtype)
    directions = [np.asarray(d, dtype=dtype) for d in (DIR_EAST, DIR_NORTH, DIR_WEST, DIR_SOUTH)]
    points = [np.asarray(support_point(cvx_set, d), dtype=dtype) for d in directions]
    if tol is None:
        tol = default_tolerance(dtype, scale=max(float(np.abs(point).max()) for point in points))
    overapproximation = PolygonalOverapproximation(cvx_set, tol=tol, dtype=dtype)
    if verbose:
        print(f"Approximating {str(cvx_set):s} with epsilon: {epsilon:1.3e} and tol: {overapproximation.tol:1.1e}")
    for index in range(4):
        next_index = (index + 1) % 4
        overapproximation.add_approximation(points[index], directions[index], points[next_index], directions[next_index])
    if verbose:
        print(f"Seeded {len(overapproximation):d} arcs with maximum error: {overapproximation.max_error:1.3e}")

    index, n_splits = 0, 0
    while index < len(overapproximation):
        approximation = overapproximation[index]
        if approximation.err <= epsilon or not approximation.refinable:
            index += 1
            continue
        n_before_split = len(overapproximation)
        overapproximation.refine(index)
        n_splits += 1
        if verbose:
            split_str = "inserted" if len(overapproximation) > n_before_split else "merged"
            print(f"{n_splits:4d}. Split arc {index:d} (error: {approximation.err:1.3e}) and {split_str:s} the new arc")

    if verbose:
        print(
            f"Done! {len(overapproximation):d} arcs after {n_splits:d} splits with maximum error: "
            f"{overapproximation.max_error:1.3e}"
        )
    return overapproximation
