# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
#
# SPDX-License-Identifier: AGPL-3.0-or-later

# Code purpose:  Specify the constants used by the set representations, the polygonal approximation, and the testing
# workflows

import numpy as np

PYPOLYAPPROX_ZERO = 1e-6  # Zero threshold for numerical stability of set representations

# Tolerance TOL of the iterative refinement (points are equal, directions are degenerate) per numeric precision
APPROXIMATION_TOL_FLOAT64 = 1e-8
APPROXIMATION_TOL_FLOAT32 = 1e-5

# Cardinal directions used to seed the polygonal overapproximation (counter-clockwise order)
DIR_EAST = np.array([1.0, 0.0])
DIR_NORTH = np.array([0.0, 1.0])
DIR_WEST = np.array([-1.0, 0.0])
DIR_SOUTH = np.array([0.0, -1.0])

# Solvers used by default
DEFAULT_LP_SOLVER_STR = "CLARABEL"  # CLARABEL, MOSEK, CVXOPT, SCS, ECOS, GUROBI, OSQP
DEFAULT_SOCP_SOLVER_STR = "CLARABEL"  # CLARABEL, MOSEK, CVXOPT, SCS, ECOS, GUROBI

# CVXPY args used by default
DEFAULT_CVXPY_ARGS_LP = {"solver": DEFAULT_LP_SOLVER_STR}
DEFAULT_CVXPY_ARGS_SOCP = {"solver": DEFAULT_SOCP_SOLVER_STR}

# Testing workflow constants
TESTING_VERBOSE = False
TESTING_CVXPY_TOLERANCE = 1e-4  # Agreement expected between closed-form values and those computed via CVXPY
