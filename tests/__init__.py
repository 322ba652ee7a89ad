# __init__.py -- The tests for gitrewrite
# Copyright (C) 2026 The gitrewrite developers
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitrewrite is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Tests for gitrewrite."""

__all__ = [
    "SkipTest",
    "TestCase",
    "self_test_suite",
    "test_suite",
]

import os
import unittest
from typing import Optional
from unittest import SkipTest
from unittest import TestCase as _TestCase

# Environment that would leak the developer's Git identity into tests
_IDENTITY_VARIABLES = (
    "GIT_AUTHOR_NAME",
    "GIT_AUTHOR_EMAIL",
    "GIT_COMMITTER_NAME",
    "GIT_COMMITTER_EMAIL",
    "GIT_CONFIG_GLOBAL",
    "GIT_CONFIG_SYSTEM",
    "GIT_TRACE",
)


class TestCase(_TestCase):
    """Base class for gitrewrite tests.

    HOME points at a directory that does not exist and the identity
    variables are cleared, so no user configuration is picked up.
    """

    def setUp(self) -> None:
        super().setUp()
        self.overrideEnv("HOME", "/nonexistent")
        self.overrideEnv("XDG_CONFIG_HOME", "/nonexistent")
        for name in _IDENTITY_VARIABLES:
            self.overrideEnv(name, None)

    def overrideEnv(self, name: str, value: Optional[str]) -> None:
        def restore(oldval: Optional[str]) -> None:
            if oldval is not None:
                os.environ[name] = oldval
            else:
                os.environ.pop(name, None)

        oldval = os.environ.get(name)
        if value is not None:
            os.environ[name] = value
        else:
            os.environ.pop(name, None)
        self.addCleanup(restore, oldval)


def self_test_suite() -> unittest.TestSuite:
    names = [
        "cli",
        "config",
        "errors",
        "log_utils",
        "porcelain",
        "publish",
        "records",
        "rewrite",
        "store",
        "transport",
        "walk",
    ]
    module_names = ["tests.test_" + name for name in names]
    loader = unittest.TestLoader()
    return loader.loadTestsFromNames(module_names)


def test_suite() -> unittest.TestSuite:
    result = unittest.TestSuite()
    result.addTests(self_test_suite())
    return result
