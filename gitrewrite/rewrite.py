# rewrite.py -- Rewriting a linear chain of commits
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

"""History rewriting.

A commit's sha covers its parent's sha, so changing any commit changes every
descendant. All operations here therefore share one mechanism: a policy
decides which commits of the chain survive and what their messages become,
and ChainRewriter then recreates every survivor, oldest first, linking each
new commit to the one created just before it.

Rewritten commits keep their tree and author. The committer is always the
rewriting identity at the time of the rewrite, so even commits whose content
and position are unchanged (such as the root when amending a later commit)
get a new sha.
"""

__all__ = [
    "Amend",
    "ChainRewriter",
    "Delete",
    "RewritePolicy",
    "RewriteResult",
    "Truncate",
    "rewrite_branch",
]

import time
from collections.abc import Callable
from typing import NamedTuple, Optional, Union

from .config import Identity
from .errors import CannotDeleteSoleCommit, EncodeOrStoreError
from .log_utils import getLogger
from .records import CommitRecord, RootFirstChain, TipFirstChain
from .store import ObjectStoreAdapter
from .walk import current_branch, walk_ancestry

logger = getLogger(__name__)


def _to_sha(sha: Union[str, bytes]) -> bytes:
    if isinstance(sha, str):
        sha = sha.encode("ascii")
    return sha.strip().lower()


class RewritePolicy:
    """Decides which commits of a chain survive a rewrite."""

    def plan(self, chain: RootFirstChain) -> Optional[list[CommitRecord]]:
        """Select the surviving commits.

        Args:
          chain: The current history, oldest first

        Returns: Surviving records oldest first, with the messages they
          should carry, or None if nothing needs to be rewritten
        """
        raise NotImplementedError(self.plan)


class Truncate(RewritePolicy):
    """Keep only the newest commits; the oldest kept one becomes the root."""

    def __init__(self, keep: int) -> None:
        if keep < 1:
            raise ValueError(f"must keep at least one commit, not {keep}")
        self.keep = keep

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.keep!r})"

    def plan(self, chain: RootFirstChain) -> Optional[list[CommitRecord]]:
        if len(chain) <= self.keep:
            return None
        return list(chain[len(chain) - self.keep :])


class Delete(RewritePolicy):
    """Drop one commit, joining its child to its parent."""

    def __init__(self, target: Union[str, bytes]) -> None:
        self.target = _to_sha(target)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.target!r})"

    def plan(self, chain: RootFirstChain) -> Optional[list[CommitRecord]]:
        if len(chain) == 1:
            raise CannotDeleteSoleCommit()
        index = chain.index_of(self.target)
        return [record for i, record in enumerate(chain) if i != index]


class Amend(RewritePolicy):
    """Replace the message of one commit."""

    def __init__(self, target: Union[str, bytes], message: Union[str, bytes]) -> None:
        self.target = _to_sha(target)
        if isinstance(message, str):
            message = message.encode("utf-8")
        self.message = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.target!r}, {self.message!r})"

    def plan(self, chain: RootFirstChain) -> Optional[list[CommitRecord]]:
        index = chain.index_of(self.target)
        survivors = list(chain)
        survivors[index] = survivors[index]._replace(message=self.message)
        return survivors


class RewriteResult(NamedTuple):
    """Outcome of a rewrite.

    Attributes:
      old_tip: Tip before the rewrite
      new_tip: Tip after the rewrite; equal to old_tip for a no-op
      chain: Resulting history, oldest first
      mapping: Original sha to rewritten sha for every surviving commit
      noop: True if the policy decided nothing had to change
    """

    old_tip: bytes
    new_tip: bytes
    chain: RootFirstChain
    mapping: dict[bytes, bytes]
    noop: bool = False


class ChainRewriter:
    """Recreates the surviving commits of a chain under a new identity."""

    def __init__(
        self,
        store: ObjectStoreAdapter,
        identity: Identity,
        clock: Callable[[], float] = time.time,
        timezone: Optional[int] = None,
    ) -> None:
        """Create a ChainRewriter.

        Args:
          store: Store the new commits are written to
          identity: Committer of the rewritten commits
          clock: Returns the current time in seconds since the epoch
          timezone: Committer timezone offset in seconds; defaults to local
        """
        self.store = store
        self.identity = identity
        self.clock = clock
        self.timezone = timezone

    def rewrite(self, chain: TipFirstChain, policy: RewritePolicy) -> RewriteResult:
        """Rewrite a chain according to a policy.

        Nothing but new objects is written; moving the branch is up to the
        caller. If writing fails part way, the objects already written stay
        behind unreferenced.

        Raises:
          CommitNotFound: if the policy targets a commit not in the chain
          CannotDeleteSoleCommit: if deleting the only commit
          EncodeOrStoreError: if a rewritten commit could not be stored
        """
        old_chain = chain.root_first()
        survivors = policy.plan(old_chain)
        old_tip = old_chain.tip.sha
        assert old_tip is not None
        if survivors is None:
            logger.info("%r: nothing to rewrite in %d commits", policy, len(chain))
            return RewriteResult(old_tip, old_tip, old_chain, {}, noop=True)

        committer = self.identity.signature(int(self.clock()), self.timezone)
        mapping: dict[bytes, bytes] = {}
        new_records: list[CommitRecord] = []
        parent: Optional[bytes] = None
        for record in survivors:
            new_record = record._replace(sha=None, parent=parent, committer=committer)
            assert record.sha is not None
            try:
                new_sha = self.store.write_commit(new_record)
            except EncodeOrStoreError as exc:
                if exc.sha is not None:
                    raise
                raise EncodeOrStoreError(exc.reason, record.sha) from exc
            mapping[record.sha] = new_sha
            new_records.append(new_record._replace(sha=new_sha))
            parent = new_sha

        assert parent is not None
        logger.info(
            "%r: rewrote %d commits into %d, new tip %s",
            policy,
            len(old_chain),
            len(new_records),
            parent.decode("ascii"),
        )
        return RewriteResult(old_tip, parent, RootFirstChain(new_records), mapping)


def rewrite_branch(
    store: ObjectStoreAdapter, rewriter: ChainRewriter, policy: RewritePolicy
) -> tuple[bytes, RewriteResult]:
    """Rewrite the history of the branch HEAD is on.

    The branch reference itself is left alone.

    Returns: Tuple with the branch ref name and the rewrite result

    Raises:
      NotABranch: if HEAD is not on a branch
      TraversalError: if the history cannot be walked
    """
    branch, tip = current_branch(store)
    chain = walk_ancestry(store, tip)
    return branch, rewriter.rewrite(chain, policy)
