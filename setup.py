# Copyright (C) 2020-2025 Mitsubishi Electric Research Laboratories (MERL)
# Copyright (c) 2019 Tor Aksel N. Heirung
#
# SPDX-License-Identifier: AGPL-3.0-or-later
# SPDX-License-Identifier: MIT

from setuptools import setup

with open("README.md", "r") as fh:
    long_description = fh.read()

# numpy>=1.14 for rcond=None correct defaults from https://stackoverflow.com/a/44678023
# scipy>=1.3.0 for scipy.spatial.ConvexHull with counter-clockwise vertices in 2D
# pycddlib>=3.0.0 for the cdd.matrix_from_array/cdd.polyhedron_from_matrix API
# cvxpy>=1.5.3 for CLARABEL as the default solver
INSTALL_REQUIRES = [
    "numpy>=1.14",
    "scipy>=1.3.0",
    "pycddlib>=3.0.0",
    "cvxpy>=1.5.3",
]
TESTS_REQUIRES = ["pytest", "coverage"]

setup(
    name="pypolyapprox",
    version="1.0.0",
    description="A Python package for epsilon-close polygonal overapproximation of two-dimensional convex sets.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Abraham P. Vinod",
    author_email="vinod@merl.com, abraham.p.vinod@ieee.org",
    license="AGPL-3.0-or-later",
    packages=[
        "pypolyapprox",
        "pypolyapprox.common",
        "pypolyapprox.Polygon",
        "pypolyapprox.Ellipsoid",
        "pypolyapprox.Approximations",
    ],
    install_requires=INSTALL_REQUIRES,
    extras_require={
        "with_tests": TESTS_REQUIRES,
    },
    python_requires=">=3.9",
    zip_safe=False,
)
