# store.py -- Narrow object store interface used by the rewrite engine
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

"""Object store adapter.

The rewrite engine never touches encoded objects directly. It reads and
writes CommitRecords and moves branch references through the small
interface defined here. RepoObjectStore implements it on top of any Dulwich
repository, in memory or on disk.
"""

__all__ = [
    "ObjectStoreAdapter",
    "RepoObjectStore",
]

from typing import Optional

from dulwich.errors import ObjectFormatException
from dulwich.object_store import commit_tree_changes
from dulwich.objects import Blob, Commit
from dulwich.refs import HEADREF, LOCAL_BRANCH_PREFIX
from dulwich.repo import BaseRepo

from .errors import EncodeOrStoreError, NotABranch, TraversalError
from .log_utils import getLogger
from .records import CommitRecord

logger = getLogger(__name__)

# Mode for regular, non-executable files in a tree
_FILE_MODE = 0o100644


class ObjectStoreAdapter:
    """Interface between the rewrite engine and a content-addressed store."""

    def head_branch(self) -> bytes:
        """Return the branch ref HEAD points at.

        Raises:
          NotABranch: if HEAD is detached or points outside refs/heads/
        """
        raise NotImplementedError(self.head_branch)

    def resolve_tip(self, branch: bytes) -> bytes:
        """Return the commit a branch points at.

        Raises:
          TraversalError: if the branch does not exist
        """
        raise NotImplementedError(self.resolve_tip)

    def read_commit(self, sha: bytes) -> CommitRecord:
        """Read a commit.

        Raises:
          TraversalError: if the commit is missing or not a commit
          MergeCommitUnsupported: if it has more than one parent
        """
        raise NotImplementedError(self.read_commit)

    def tree_of(self, sha: bytes) -> bytes:
        """Return the tree of any commit, merges included.

        Raises:
          TraversalError: if the commit is missing or not a commit
        """
        raise NotImplementedError(self.tree_of)

    def write_commit(self, record: CommitRecord) -> bytes:
        """Encode and persist a commit, returning its new sha.

        Raises:
          EncodeOrStoreError: if the commit could not be stored
        """
        raise NotImplementedError(self.write_commit)

    def set_reference(self, branch: bytes, sha: bytes) -> None:
        """Point a branch at a commit."""
        raise NotImplementedError(self.set_reference)

    def write_blob(self, data: bytes) -> bytes:
        """Store file contents, returning the blob sha."""
        raise NotImplementedError(self.write_blob)

    def update_tree(self, tree: bytes, path: bytes, blob: bytes) -> bytes:
        """Return the sha of tree with path set to the given blob."""
        raise NotImplementedError(self.update_tree)


class RepoObjectStore(ObjectStoreAdapter):
    """ObjectStoreAdapter backed by a Dulwich repository."""

    def __init__(self, repo: BaseRepo, reflog_message: Optional[bytes] = None) -> None:
        """Create a new RepoObjectStore.

        Args:
          repo: Repository whose object store and refs are used
          reflog_message: Message recorded when references are moved
        """
        self.repo = repo
        self.reflog_message = reflog_message or b"gitrewrite: rewrite history"

    def head_branch(self) -> bytes:
        refnames, sha = self.repo.refs.follow(HEADREF)
        if len(refnames) < 2:
            if sha is None:
                raise TraversalError("repository has no HEAD")
            raise NotABranch(None)
        target = refnames[-1]
        if not target.startswith(LOCAL_BRANCH_PREFIX):
            raise NotABranch(target)
        return target

    def resolve_tip(self, branch: bytes) -> bytes:
        try:
            return self.repo.refs[branch]
        except KeyError as exc:
            raise TraversalError(
                f"{branch.decode('utf-8', 'replace')} has no commits"
            ) from exc

    def _get_commit(self, sha: bytes) -> Commit:
        try:
            obj = self.repo.object_store[sha]
        except KeyError as exc:
            raise TraversalError(
                f"commit {sha.decode('ascii', 'replace')} is missing from the store"
            ) from exc
        if not isinstance(obj, Commit):
            raise TraversalError(
                f"{sha.decode('ascii', 'replace')} is a {obj.type_name.decode()}, "
                "not a commit"
            )
        return obj

    def read_commit(self, sha: bytes) -> CommitRecord:
        return CommitRecord.from_commit(self._get_commit(sha))

    def tree_of(self, sha: bytes) -> bytes:
        return self._get_commit(sha).tree

    def write_commit(self, record: CommitRecord) -> bytes:
        if record.tree not in self.repo.object_store:
            raise EncodeOrStoreError(
                f"tree {record.tree.decode('ascii', 'replace')} is missing",
                record.sha,
            )
        try:
            commit = record.to_commit()
            new_sha = commit.id
            self.repo.object_store.add_object(commit)
        except (ObjectFormatException, TypeError, ValueError, OSError) as exc:
            raise EncodeOrStoreError(str(exc), record.sha) from exc
        logger.debug(
            "stored %s as %s",
            record.sha.decode("ascii") if record.sha else "new commit",
            new_sha.decode("ascii"),
        )
        return new_sha

    def set_reference(self, branch: bytes, sha: bytes) -> None:
        self.repo.refs.set_if_equals(branch, None, sha, message=self.reflog_message)

    def write_blob(self, data: bytes) -> bytes:
        blob = Blob.from_string(data)
        self.repo.object_store.add_object(blob)
        return blob.id

    def update_tree(self, tree: bytes, path: bytes, blob: bytes) -> bytes:
        return commit_tree_changes(
            self.repo.object_store, tree, [(path, _FILE_MODE, blob)]
        )
