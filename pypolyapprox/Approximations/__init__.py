# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
#
# SPDX-License-Identifier: AGPL-3.0-or-later

# Code purpose: Import the polygonal approximation methods

from pypolyapprox.Approximations.iterative_refinement import (
    PolygonalOverapproximation,
    approximate,
    default_tolerance,
)
from pypolyapprox.Approximations.local_approximation import (
    LocalApproximation,
    chord_normal,
    is_redundant,
    line_intersection,
    new_approx,
    refine,
)
from pypolyapprox.Approximations.overapproximate import box_approximation, overapproximate, overapproximation_error

__all__ = [
    "LocalApproximation",
    "PolygonalOverapproximation",
    "approximate",
    "box_approximation",
    "chord_normal",
    "default_tolerance",
    "is_redundant",
    "line_intersection",
    "new_approx",
    "overapproximate",
    "overapproximation_error",
    "refine",
]
