# log_utils.py -- Logging utilities for gitrewrite
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

"""Logging utilities for gitrewrite.

gitrewrite is mostly used as a library, so nothing is printed unless the
application configures logging. Modules get their logger through getLogger
from this module; the "gitrewrite" logger carries a null handler until
default_logging_config or remove_null_handler is called.

GIT_TRACE is honoured the same way Dulwich honours it, so a single variable
turns on debug output for both.
"""

import logging
import os
import sys
from typing import Optional

getLogger = logging.getLogger

_TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class _NullHandler(logging.Handler):
    """No-op logging handler to avoid unexpected logging warnings."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_GITREWRITE_LOGGER = getLogger("gitrewrite")
_GITREWRITE_LOGGER.addHandler(_NULL_HANDLER)


def _get_trace_target() -> Optional[str]:
    """Get the trace target from the GIT_TRACE environment variable.

    Returns:
        - None if tracing is disabled or the value is not understood
        - "-" for stderr output (values "1", "2", "true")
        - an absolute file or directory path otherwise
    """
    trace_value = os.environ.get("GIT_TRACE", "")
    if not trace_value or trace_value.lower() in ("0", "false"):
        return None
    if trace_value.lower() in ("1", "2", "true"):
        return "-"
    if os.path.isabs(trace_value):
        return trace_value
    return None


def _configure_logging_from_trace() -> bool:
    """Configure debug logging if GIT_TRACE asks for it.

    Returns True if trace configuration was applied, False otherwise.
    """
    trace_target = _get_trace_target()
    if trace_target is None:
        return False

    if trace_target == "-":
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=_TRACE_FORMAT)
        return True

    if os.path.isdir(trace_target):
        filename = os.path.join(trace_target, f"trace.{os.getpid()}")
    else:
        filename = trace_target
    try:
        logging.basicConfig(
            level=logging.DEBUG, filename=filename, filemode="a", format=_TRACE_FORMAT
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Failed to open GIT_TRACE file {trace_target}: {e}\n")
        return False
    return True


def default_logging_config(verbose: bool = False) -> None:
    """Set up the default gitrewrite loggers.

    Args:
      verbose: Log at DEBUG rather than INFO when GIT_TRACE is not set
    """
    remove_null_handler()

    if not _configure_logging_from_trace():
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            stream=sys.stderr,
            format="%(message)s",
        )


def remove_null_handler() -> None:
    """Remove the null handler from the gitrewrite logger."""
    _GITREWRITE_LOGGER.removeHandler(_NULL_HANDLER)
