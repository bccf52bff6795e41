# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
#
# SPDX-License-Identifier: AGPL-3.0-or-later

# Code purpose:  Define the local approximation of an arc of the boundary of a two-dimensional convex set, and the
# functions that construct and split such local approximations.

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from pypolyapprox.common import support_point


class LocalApproximation:
    r"""Local approximation of the arc of the boundary of a convex set :math:`\mathcal{S}\subset\mathbb{R}^2` between
    two support points.

    Args:
        p1 (Sequence[float] | np.ndarray): Support point of :math:`\mathcal{S}` along d1 (start of the arc).
        d1 (Sequence[float] | np.ndarray): Outward direction at p1.
        p2 (Sequence[float] | np.ndarray): Support point of :math:`\mathcal{S}` along d2 (end of the arc).
        d2 (Sequence[float] | np.ndarray): Outward direction at p2.
        q (Sequence[float] | np.ndarray): Intersection of the supporting lines :math:`\{x\ |\ d_1^\top x=d_1^\top p_1\}`
            and :math:`\{x\ |\ d_2^\top x=d_2^\top p_2\}`. By convention, q is p1 when the arc is degenerate.
        refinable (bool): Whether splitting this local approximation may reduce the error.
        err (float): Upper bound on the Hausdorff distance contributed by this arc.

    Notes:
        A local approximation is immutable. The arrays are copied at construction and flagged read-only, and the
        attributes are exposed as read-only properties. Use :meth:`new_approx` to construct a local approximation from
        the support points.
    """

    def __init__(
        self,
        p1: Sequence[float] | np.ndarray,
        d1: Sequence[float] | np.ndarray,
        p2: Sequence[float] | np.ndarray,
        d2: Sequence[float] | np.ndarray,
        q: Sequence[float] | np.ndarray,
        refinable: bool,
        err: float,
    ) -> None:
        """Constructor for LocalApproximation"""
        self._p1 = self._read_only_copy(p1)
        self._d1 = self._read_only_copy(d1)
        self._p2 = self._read_only_copy(p2)
        self._d2 = self._read_only_copy(d2)
        self._q = self._read_only_copy(q)
        self._refinable = bool(refinable)
        self._err = float(err)

    @staticmethod
    def _read_only_copy(x: Sequence[float] | np.ndarray) -> np.ndarray:
        """Protected method to copy a vector and flag the copy as read-only"""
        x = np.array(x)
        if not np.issubdtype(x.dtype, np.floating):
            x = x.astype(float)
        x.setflags(write=False)
        return x

    @property
    def p1(self) -> np.ndarray:
        """Support point at the start of the arc"""
        return self._p1

    @property
    def d1(self) -> np.ndarray:
        """Outward direction at p1"""
        return self._d1

    @property
    def p2(self) -> np.ndarray:
        """Support point at the end of the arc"""
        return self._p2

    @property
    def d2(self) -> np.ndarray:
        """Outward direction at p2"""
        return self._d2

    @property
    def q(self) -> np.ndarray:
        """Intersection of the supporting lines at p1 and p2 (a vertex of the outer approximation)"""
        return self._q

    @property
    def refinable(self) -> bool:
        """Whether the local approximation may be split further"""
        return self._refinable

    @property
    def err(self) -> float:
        """Upper bound on the Hausdorff distance contributed by the arc"""
        return self._err

    def __eq__(self, other: object) -> Any:
        if not isinstance(other, LocalApproximation):
            return NotImplemented
        return (
            np.array_equal(self.p1, other.p1)
            and np.array_equal(self.d1, other.d1)
            and np.array_equal(self.p2, other.p2)
            and np.array_equal(self.d2, other.d2)
            and np.array_equal(self.q, other.q)
            and self.refinable == other.refinable
            and self.err == other.err
        )

    def __str__(self) -> str:
        refinable_str = "refinable" if self.refinable else "not refinable"
        return f"LocalApproximation with error {self.err:1.3e} ({refinable_str:s})"

    def __repr__(self) -> str:
        return (
            f"{str(self):s}\n\tp1: {np.array2string(self.p1):s}, d1: {np.array2string(self.d1):s}"
            f"\n\tp2: {np.array2string(self.p2):s}, d2: {np.array2string(self.d2):s}"
            f"\n\tq: {np.array2string(self.q):s}"
        )


def chord_normal(p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    r"""Compute the outward unit normal of the chord from p1 to p2.

    Args:
        p1 (numpy.ndarray): Start of the chord
        p2 (numpy.ndarray): End of the chord

    Returns:
        numpy.ndarray: Unit vector :math:`\frac{[p_{2,y} - p_{1,y}, p_{1,x} - p_{2,x}]}{\|p_2 - p_1\|_2}`, which is the
        chord direction rotated by -90 degrees. For a counter-clockwise traversal, this normal points away from the set.
    """
    normal = np.array([p2[1] - p1[1], p1[0] - p2[0]], dtype=p1.dtype)
    return normal / np.linalg.norm(normal)


def line_intersection(
    p1: np.ndarray, d1: np.ndarray, p2: np.ndarray, d2: np.ndarray, tol: float
) -> Optional[np.ndarray]:
    r"""Intersect the line through p1 with normal d1 and the line through p2 with normal d2.

    Args:
        p1 (numpy.ndarray): Point on the first line
        d1 (numpy.ndarray): Normal of the first line
        p2 (numpy.ndarray): Point on the second line
        d2 (numpy.ndarray): Normal of the second line
        tol (float): Tolerance below which the (normalized) determinant of :math:`[d_1, d_2]^\top` is treated as zero

    Returns:
        numpy.ndarray | None: The point x with :math:`d_1^\top x = d_1^\top p_1` and :math:`d_2^\top x = d_2^\top p_2`.
        None when the lines are parallel or the system is numerically singular.
    """
    normal_matrix = np.vstack((d1, d2))
    offset = np.array([d1 @ p1, d2 @ p2], dtype=p1.dtype)
    scaled_determinant = np.linalg.det(normal_matrix) / (np.linalg.norm(d1) * np.linalg.norm(d2))
    if not np.isfinite(scaled_determinant) or abs(scaled_determinant) < tol:
        return None
    try:
        intersection_point = np.linalg.solve(normal_matrix, offset)
    except np.linalg.LinAlgError:
        return None
    if not np.isfinite(intersection_point).all():
        return None
    return intersection_point.astype(p1.dtype)


def new_approx(
    cvx_set: Any,
    p1: np.ndarray,
    d1: np.ndarray,
    p2: np.ndarray,
    d2: np.ndarray,
    tol: float,
) -> LocalApproximation:
    r"""Construct the local approximation of the arc of a convex set between the support points p1 and p2.

    Args:
        cvx_set (object): Convex set in :math:`\mathbb{R}^2` with a support oracle (see
            :meth:`pypolyapprox.common.support_point`)
        p1 (numpy.ndarray): Support point of cvx_set along d1
        d1 (numpy.ndarray): Outward direction at p1
        p2 (numpy.ndarray): Support point of cvx_set along d2
        d2 (numpy.ndarray): Outward direction at p2
        tol (float): Tolerance used to detect coincident points and parallel lines

    Returns:
        LocalApproximation: Local approximation of the arc from p1 to p2.

    Notes:
        When p1 and p2 coincide (up to tol), or when the supporting lines at p1 and p2 have no unique intersection, the
        arc is degenerate and we return :math:`q=p_1` with zero error, which can not be refined. The parallel-line test
        uses tol divided by the largest absolute coordinate of p1 and p2 (when it exceeds one). Otherwise, with the chord
        normal :math:`n` and the support point :math:`s` of cvx_set along :math:`n`, the error is

        .. math ::
            \text{err} = \min\left(\|q - s\|_2,\ n^\top (q - p_1)\right),

        and the local approximation is refinable if and only if err exceeds tol and q does not coincide with p1 or p2.
    """
    if np.linalg.norm(p1 - p2) < tol:
        return LocalApproximation(p1, d1, p2, d2, p1, refinable=False, err=0.0)
    ndir = chord_normal(p1, p2)
    # Relative tolerance for the scale-free determinant
    q = line_intersection(p1, d1, p2, d2, tol / max(1.0, float(np.abs(p1).max()), float(np.abs(p2).max())))
    if q is None:
        # Parallel supporting lines are treated as coincident points
        return LocalApproximation(p1, d1, p2, d2, p1, refinable=False, err=0.0)
    s = np.asarray(support_point(cvx_set, ndir), dtype=p1.dtype)
    err = min(np.linalg.norm(q - s), ndir @ (q - p1))
    refinable = err > tol and not (np.linalg.norm(p1 - q) < tol or np.linalg.norm(q - p2) < tol)
    return LocalApproximation(p1, d1, p2, d2, q, refinable=refinable, err=err)


def refine(
    cvx_set: Any, approximation: LocalApproximation, tol: float
) -> tuple[LocalApproximation, LocalApproximation]:
    r"""Split a refinable local approximation into two local approximations using the support point along the chord
    normal.

    Args:
        cvx_set (object): Convex set in :math:`\mathbb{R}^2` with a support oracle
        approximation (LocalApproximation): Local approximation to split
        tol (float): Tolerance used to construct the children (see :meth:`new_approx`)

    Raises:
        ValueError: When approximation is not refinable

    Returns:
        tuple: A tuple with two items:
            #. child1 (LocalApproximation): Local approximation of the arc from approximation.p1 to the new support
               point
            #. child2 (LocalApproximation): Local approximation of the arc from the new support point to
               approximation.p2

    Notes:
        Each call queries the support oracle once to obtain the new boundary point, and once per child to estimate the
        errors. A child that reproduces approximation up to tol (the support point is within tol of p1 or p2
        and the floating point noise is of the order of tol) is returned as not refinable.
    """
    if not approximation.refinable:
        raise ValueError(f"Expected a refinable local approximation. Got {str(approximation):s}!")
    p1, d1, p2, d2 = approximation.p1, approximation.d1, approximation.p2, approximation.d2
    ndir = chord_normal(p1, p2)
    s = np.asarray(support_point(cvx_set, ndir), dtype=p1.dtype)
    child1 = new_approx(cvx_set, p1, d1, s, ndir, tol)
    child2 = new_approx(cvx_set, s, ndir, p2, d2, tol)
    return _stop_if_unchanged(child1, approximation, tol), _stop_if_unchanged(child2, approximation, tol)


def _stop_if_unchanged(child: LocalApproximation, parent: LocalApproximation, tol: float) -> LocalApproximation:
    """Private function to mark a child that reproduces its parent (p1, p2, and q up to tol) as not refinable"""
    unchanged = all(
        np.linalg.norm(child_point - parent_point) < tol
        for child_point, parent_point in ((child.p1, parent.p1), (child.p2, parent.p2), (child.q, parent.q))
    )
    if not unchanged or not child.refinable:
        return child
    return LocalApproximation(child.p1, child.d1, child.p2, child.d2, child.q, refinable=False, err=child.err)


def is_redundant(approximation: LocalApproximation, next_approximation: LocalApproximation, tol: float) -> bool:
    """Check if approximation starts at the same point and shares the same vertex q as next_approximation (up to tol)"""
    return bool(
        np.linalg.norm(approximation.p1 - next_approximation.p1) < tol
        and np.linalg.norm(approximation.q - next_approximation.q) < tol
    )
