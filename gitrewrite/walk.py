# walk.py -- Walking the ancestry of a branch
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

"""Walking the ancestry of a branch tip."""

__all__ = [
    "current_branch",
    "recent_commits",
    "walk_ancestry",
]

from dulwich.repo import BaseRepo
from dulwich.walk import Walker

from .errors import TraversalError
from .log_utils import getLogger
from .records import CommitRecord, CommitSummary, TipFirstChain
from .store import ObjectStoreAdapter

logger = getLogger(__name__)


def current_branch(store: ObjectStoreAdapter) -> tuple[bytes, bytes]:
    """Find the branch HEAD designates and the commit it points at.

    Returns: Tuple with branch ref name and tip sha

    Raises:
      NotABranch: if HEAD is not on a branch
      TraversalError: if the branch has no commits
    """
    branch = store.head_branch()
    return branch, store.resolve_tip(branch)


def walk_ancestry(store: ObjectStoreAdapter, tip: bytes) -> TipFirstChain:
    """Collect the linear history ending at tip.

    Args:
      store: Store to read commits from
      tip: SHA of the newest commit

    Returns: The chain from tip back to its root, newest first

    Raises:
      TraversalError: if a parent cannot be read or history loops
      MergeCommitUnsupported: if a merge commit is reached
    """
    records: list[CommitRecord] = []
    seen: set[bytes] = set()
    sha = tip
    while True:
        if sha in seen:
            raise TraversalError(
                f"history loops back to {sha.decode('ascii', 'replace')}"
            )
        seen.add(sha)
        record = store.read_commit(sha)
        records.append(record)
        if record.parent is None:
            break
        sha = record.parent
    logger.debug("walked %d commits from %s", len(records), tip.decode("ascii"))
    return TipFirstChain(records)


def recent_commits(
    repo: BaseRepo, tip: bytes, max_entries: int = 0
) -> list[CommitSummary]:
    """Summarize the newest commits reachable from tip.

    Merge commits are listed like any other commit; only rewriting is
    restricted to linear history.

    Args:
      repo: Repository to read from
      tip: SHA to start from
      max_entries: Maximum number of commits to return; zero or less
        means no limit
    """
    walker = Walker(
        repo.object_store,
        [tip],
        max_entries=max_entries if max_entries > 0 else None,
    )
    return [CommitSummary.from_commit(entry.commit) for entry in walker]
