# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
# Copyright (c) 2019 Tor Aksel N. Heirung
#
# SPDX-License-Identifier: AGPL-3.0-or-later
# SPDX-License-Identifier: MIT

# Code purpose:  __init__ script for pypolyapprox package

from .common import is_ellipsoid, is_polygon, support_point
from .common.constants import PYPOLYAPPROX_ZERO
from .Ellipsoid import Ellipsoid
from .Polygon import Polygon
from .Approximations import (
    LocalApproximation,
    PolygonalOverapproximation,
    approximate,
    box_approximation,
    default_tolerance,
    overapproximate,
    overapproximation_error,
)
