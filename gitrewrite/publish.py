# publish.py -- Moving a branch and propagating it to the remote
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

"""Publishing a new branch tip."""

__all__ = ["publish"]

from .log_utils import getLogger
from .store import ObjectStoreAdapter
from .transport import ANONYMOUS, ClonedRepository, Credentials, PushStatus, Transport

logger = getLogger(__name__)


def publish(
    store: ObjectStoreAdapter,
    transport: Transport,
    clone: ClonedRepository,
    branch: bytes,
    new_tip: bytes,
    credentials: Credentials = ANONYMOUS,
    *,
    force: bool = True,
    lease: bool = False,
) -> PushStatus:
    """Point branch at new_tip locally, then push it under the same name.

    The local branch is moved before pushing. If the push fails, the local
    clone and the remote disagree until the next clone; the remote keeps its
    previous history.

    Args:
      store: Store of the local clone
      transport: Transport used to push
      clone: The local clone
      branch: Full ref name of the branch
      new_tip: Commit the branch should point at
      credentials: Credentials for the remote
      force: Overwrite the remote branch. Without it the push fails with
        TransportError if the remote branch moved since the clone was made
      lease: With force, fail with ConcurrentModification instead of
        overwriting if the remote branch moved since the clone was made

    Returns: UPDATED, or ALREADY_UP_TO_DATE if the remote already had new_tip

    Raises:
      AuthError: if the remote refused the credentials
      TransportError: if the push failed or was not a fast-forward
      ConcurrentModification: if lease is set and the remote branch moved
    """
    store.set_reference(branch, new_tip)
    logger.debug(
        "%s now at %s",
        branch.decode("utf-8", "replace"),
        new_tip.decode("ascii"),
    )
    if force:
        return transport.force_push(clone, branch, credentials, lease=lease)
    return transport.push(clone, branch, credentials)
