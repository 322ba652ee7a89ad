# config.py -- Committer identity configuration
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

"""Identity used as committer of every rewritten or appended commit.

The identity is resolved once per process, the same way Git resolves the
committer: GIT_COMMITTER_NAME/GIT_COMMITTER_EMAIL, then user.name/user.email
from the configuration files. Fields set by neither come from DEFAULT_IDENTITY,
so the result does not depend on the host. Applications can pin a fixed
identity at startup with set_default_identity. The rewrite engine does
not read this module-level value itself; it is handed an Identity.
"""

__all__ = [
    "DEFAULT_IDENTITY",
    "Identity",
    "default_identity",
    "load_identity",
    "set_default_identity",
]

import os
import time as _time
from typing import NamedTuple, Optional, Union

from dulwich.config import Config, StackedConfig
from dulwich.repo import check_user_identity

from .records import Signature


class Identity(NamedTuple):
    """Name and email of the party producing commits."""

    name: bytes
    email: bytes

    @classmethod
    def parse(cls, identity: Union[str, bytes]) -> "Identity":
        """Parse an identity of the form ``Name <email>``.

        Raises:
          dulwich.repo.InvalidUserIdentity: if the identity is malformed
        """
        if isinstance(identity, str):
            identity = identity.encode("utf-8")
        check_user_identity(identity)
        name, email = identity.split(b" <", 1)
        return cls(name, email.rstrip(b">"))

    def __bytes__(self) -> bytes:
        return self.name + b" <" + self.email + b">"

    def signature(self, time: int, timezone: Optional[int] = None) -> Signature:
        """Stamp this identity with a time.

        Args:
          time: Seconds since the epoch
          timezone: Offset from UTC in seconds; defaults to the local
            timezone at that time
        """
        if timezone is None:
            timezone = _time.localtime(time).tm_gmtoff
        return Signature(bytes(self), int(time), timezone)


DEFAULT_IDENTITY = Identity(b"gitrewrite", b"gitrewrite@localhost")


def load_identity(config: Optional[Config] = None) -> Identity:
    """Determine the committer identity from the environment and config.

    GIT_COMMITTER_NAME and GIT_COMMITTER_EMAIL win over user.name and
    user.email. A field found in neither place is taken from
    DEFAULT_IDENTITY.

    Args:
      config: Configuration to read user.name/user.email from; defaults
        to the user's global and system Git configuration

    Raises:
      dulwich.repo.InvalidUserIdentity: if the result is malformed
    """
    if config is None:
        config = StackedConfig.default()
    name = _lookup(config, "GIT_COMMITTER_NAME", "name")
    email = _lookup(config, "GIT_COMMITTER_EMAIL", "email")
    if name is None:
        name = DEFAULT_IDENTITY.name
    if email is None:
        email = DEFAULT_IDENTITY.email
    if email.startswith(b"<") and email.endswith(b">"):
        email = email[1:-1]
    return Identity.parse(name + b" <" + email + b">")


def _lookup(config: Config, variable: str, setting: str) -> Optional[bytes]:
    value = os.environ.get(variable)
    if value is not None:
        return value.encode("utf-8")
    try:
        return config.get(("user",), setting)
    except KeyError:
        return None


_default_identity: Optional[Identity] = None


def default_identity() -> Identity:
    """Return the process-wide committer identity, loading it on first use."""
    global _default_identity
    if _default_identity is None:
        _default_identity = load_identity()
    return _default_identity


def set_default_identity(identity: Optional[Identity]) -> None:
    """Pin the process-wide committer identity.

    Passing None makes the next default_identity() call load it again.
    """
    global _default_identity
    _default_identity = identity
