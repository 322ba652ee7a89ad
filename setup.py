#!/usr/bin/python3
# Setup file for gitrewrite
# Copyright (C) 2026 The gitrewrite developers
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

setup(package_data={"gitrewrite": ["py.typed"]})
