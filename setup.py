# This file is part of nocloud-seed. See LICENSE file for license information.

# Distutils magic for nocloud-seed

import os
import sys

import setuptools

# Python-path here is a little unpredictable as setup.py could be run
# from a directory other than the root of the repo, so ensure we can find
# our version
sys.path.insert(0, os.path.dirname(os.path.realpath(__file__)))
# isort: off
from nocloudseed.version import version_string  # noqa: E402

# isort: on
del sys.path[0]

requirements = [
    "requests",
    "PyYAML",
]

test_requirements = [
    "pytest",
    "pytest-mock",
    "responses",
]

setuptools.setup(
    name="nocloud-seed",
    version=version_string(),
    description="Seed the NoCloud datasource from the Vultr metadata service",
    python_requires=">=3.8",
    packages=setuptools.find_packages(exclude=["tests.*", "tests"]),
    license="Dual-licensed under GPLv3 or Apache 2.0",
    install_requires=requirements,
    extras_require={"test": test_requirements},
    entry_points={
        "console_scripts": [
            "nocloud-seed = nocloudseed.cmd.main:main",
        ],
    },
)
