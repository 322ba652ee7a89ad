# porcelain.py -- High level history rewriting operations on remotes
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

"""Simple wrapper that provides the operations most users need.

Every operation clones the remote into memory, works on the branch the
remote HEAD points at, and pushes the result back:

 * append_readme_commit
 * list_recent_commits
 * truncate_history
 * delete_commit
 * amend_commit_message

The rewriting operations replace history with a force push. Nothing
serializes concurrent rewrites of the same remote branch; unless lease=True
is passed, the last push wins.
"""

__all__ = [
    "README_PATH",
    "amend_commit_message",
    "append_readme_commit",
    "commits_to_json",
    "delete_commit",
    "list_recent_commits",
    "truncate_history",
]

import json
import secrets
import time
from collections.abc import Callable, Iterable
from typing import Optional, Union

from dulwich.refs import HEADREF

from .config import Identity, default_identity
from .log_utils import getLogger
from .publish import publish
from .records import CommitRecord, CommitSummary
from .rewrite import (
    Amend,
    ChainRewriter,
    Delete,
    RewritePolicy,
    RewriteResult,
    Truncate,
    rewrite_branch,
)
from .store import RepoObjectStore
from .transport import ANONYMOUS, Credentials, Transport
from .walk import current_branch, recent_commits

logger = getLogger(__name__)

README_PATH = b"README.MD"


def _encode(message: Union[str, bytes]) -> bytes:
    if isinstance(message, str):
        return message.encode("utf-8")
    return message


def append_readme_commit(
    remote_url: str,
    credentials: Credentials = ANONYMOUS,
    message: Union[str, bytes] = "Update README.MD",
    *,
    identity: Optional[Identity] = None,
    transport: Optional[Transport] = None,
    clock: Callable[[], float] = time.time,
) -> bytes:
    """Add one commit that fills README.MD with random text, and push it.

    The push is a plain fast-forward. If the remote branch moved after it
    was cloned, nothing is overwritten and TransportError is raised.

    Args:
      remote_url: Location of the remote
      credentials: Credentials for the remote
      message: Commit message
      identity: Author and committer; defaults to the configured identity
      transport: Transport to use
      clock: Returns the current time in seconds since the epoch

    Returns: SHA of the new commit

    Raises:
      TransportError: if the push failed or the remote branch moved
    """
    transport = transport or Transport()
    identity = identity or default_identity()
    clone = transport.fetch_full_history(remote_url, credentials)
    store = RepoObjectStore(clone.repo, reflog_message=b"gitrewrite: append commit")
    branch, tip = current_branch(store)

    blob = store.write_blob(secrets.token_hex(16).encode("ascii"))
    tree = store.update_tree(store.tree_of(tip), README_PATH, blob)
    signature = identity.signature(int(clock()))
    new_sha = store.write_commit(
        CommitRecord(
            sha=None,
            parent=tip,
            tree=tree,
            author=signature,
            committer=signature,
            message=_encode(message),
        )
    )
    status = publish(
        store, transport, clone, branch, new_sha, credentials, force=False
    )
    logger.info("appended %s to %s (%s)", new_sha.decode("ascii"), remote_url, status.value)
    return new_sha


def list_recent_commits(
    remote_url: str,
    credentials: Credentials = ANONYMOUS,
    max_entries: int = 0,
    *,
    transport: Optional[Transport] = None,
) -> list[CommitSummary]:
    """List the newest commits reachable from the remote HEAD.

    Args:
      remote_url: Location of the remote
      credentials: Credentials for the remote
      max_entries: Maximum number of commits; zero or less means all

    Returns: Commit summaries, newest first
    """
    transport = transport or Transport()
    clone = transport.fetch_full_history(remote_url, credentials)
    tip = RepoObjectStore(clone.repo).resolve_tip(HEADREF)
    return recent_commits(clone.repo, tip, max_entries)


def commits_to_json(summaries: Iterable[CommitSummary]) -> str:
    """Serialize commit summaries as a JSON array."""
    return json.dumps([summary.as_dict() for summary in summaries])


def _rewrite_remote(
    remote_url: str,
    credentials: Credentials,
    policy: RewritePolicy,
    identity: Optional[Identity],
    transport: Optional[Transport],
    lease: bool,
    clock: Callable[[], float],
) -> RewriteResult:
    transport = transport or Transport()
    clone = transport.fetch_full_history(remote_url, credentials)
    store = RepoObjectStore(clone.repo)
    rewriter = ChainRewriter(store, identity or default_identity(), clock=clock)
    branch, result = rewrite_branch(store, rewriter, policy)
    if result.noop:
        return result
    status = publish(
        store, transport, clone, branch, result.new_tip, credentials, lease=lease
    )
    logger.info(
        "%s on %s: %s",
        branch.decode("utf-8", "replace"),
        remote_url,
        status.value,
    )
    return result


def truncate_history(
    remote_url: str,
    credentials: Credentials = ANONYMOUS,
    keep: int = 1,
    *,
    identity: Optional[Identity] = None,
    transport: Optional[Transport] = None,
    lease: bool = False,
    clock: Callable[[], float] = time.time,
) -> RewriteResult:
    """Keep only the newest commits of the remote branch.

    If the branch has no more than keep commits, nothing is rewritten or
    pushed and the result has noop set.

    Args:
      remote_url: Location of the remote
      credentials: Credentials for the remote
      keep: Number of commits to keep, at least 1
      identity: Committer of the rewritten commits
      transport: Transport to use
      lease: Refuse to overwrite a branch that moved since it was cloned
      clock: Returns the current time in seconds since the epoch

    Raises:
      ValueError: if keep is less than 1
    """
    return _rewrite_remote(
        remote_url, credentials, Truncate(keep), identity, transport, lease, clock
    )


def delete_commit(
    remote_url: str,
    credentials: Credentials = ANONYMOUS,
    target: Union[str, bytes] = b"",
    *,
    identity: Optional[Identity] = None,
    transport: Optional[Transport] = None,
    lease: bool = False,
    clock: Callable[[], float] = time.time,
) -> RewriteResult:
    """Remove one commit from the history of the remote branch.

    The commit's child is attached to its parent. Trees are not changed, so
    the changes the deleted commit introduced remain visible in every later
    commit.

    Raises:
      CommitNotFound: if target is not in the branch history
      CannotDeleteSoleCommit: if the branch has a single commit
    """
    return _rewrite_remote(
        remote_url, credentials, Delete(target), identity, transport, lease, clock
    )


def amend_commit_message(
    remote_url: str,
    credentials: Credentials = ANONYMOUS,
    target: Union[str, bytes] = b"",
    message: Union[str, bytes] = b"",
    *,
    identity: Optional[Identity] = None,
    transport: Optional[Transport] = None,
    lease: bool = False,
    clock: Callable[[], float] = time.time,
) -> RewriteResult:
    """Change the message of one commit in the history of the remote branch.

    Raises:
      CommitNotFound: if target is not in the branch history
    """
    return _rewrite_remote(
        remote_url,
        credentials,
        Amend(target, message),
        identity,
        transport,
        lease,
        clock,
    )
