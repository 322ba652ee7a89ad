# utils.py -- Utility functions common to gitrewrite tests
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

"""Utility functions common to gitrewrite tests."""

import shutil
import tempfile
from collections.abc import Sequence
from typing import Optional
from unittest import TestCase

from dulwich.objects import Blob, Commit, Tree
from dulwich.refs import HEADREF
from dulwich.repo import BaseRepo, Repo

from gitrewrite.config import Identity

# Plain files are very frequently used in tests, so let the mode be very short.
F = 0o100644

AUTHOR = b"Test Author <test@nodomain.com>"
COMMITTER = b"Test Committer <test@nodomain.com>"
REWRITER = Identity(b"Rewriter", b"rewriter@nodomain.com")

# 2010-01-01 00:00:00 UTC
DEFAULT_TIME = 1262304000
REWRITE_TIME = 1700000000


def fixed_clock(when: float = REWRITE_TIME):
    """Return a clock that always reports the same time."""
    return lambda: when


def make_commit(
    repo: BaseRepo,
    parents: Sequence[bytes],
    message: bytes,
    commit_time: int = DEFAULT_TIME,
    author: bytes = AUTHOR,
) -> Commit:
    """Create a commit whose tree holds a single file with the message.

    Args:
      repo: Repository to add the objects to
      parents: Parent SHAs
      message: Commit message, also used as file contents
      commit_time: Author and commit time
      author: Author identity
    Returns: The stored commit
    """
    blob = Blob.from_string(message)
    tree = Tree()
    tree.add(b"file.txt", F, blob.id)
    commit = Commit()
    commit.tree = tree.id
    commit.parents = list(parents)
    commit.author = author
    commit.committer = COMMITTER
    commit.author_time = commit.commit_time = commit_time
    commit.author_timezone = commit.commit_timezone = 0
    commit.message = message
    for obj in (blob, tree, commit):
        repo.object_store.add_object(obj)
    return commit


def build_linear_history(
    repo: BaseRepo,
    messages: Sequence[bytes],
    branch: bytes = b"refs/heads/master",
    parent: Optional[bytes] = None,
) -> list[bytes]:
    """Commit one commit per message on top of each other.

    The branch is pointed at the last commit and HEAD at the branch.

    Returns: The new commit SHAs, oldest first
    """
    shas = []
    for i, message in enumerate(messages):
        commit = make_commit(
            repo, [parent] if parent else [], message, DEFAULT_TIME + 60 * i
        )
        shas.append(commit.id)
        parent = commit.id
    if parent is not None:
        repo.refs[branch] = parent
    repo.refs.set_symbolic_ref(HEADREF, branch)
    return shas


def make_bare_remote(
    testcase: TestCase,
    messages: Sequence[bytes],
    branch: bytes = b"refs/heads/master",
) -> tuple[str, list[bytes]]:
    """Create a bare repository on disk to act as a remote.

    The repository is removed when the test finishes.

    Returns: Tuple with the repository path and the commit SHAs, oldest first
    """
    path = tempfile.mkdtemp()
    testcase.addCleanup(shutil.rmtree, path)
    repo = Repo.init_bare(path)
    try:
        shas = build_linear_history(repo, messages, branch)
    finally:
        repo.close()
    return path, shas


def open_remote(testcase: TestCase, path: str) -> Repo:
    """Open a fresh view of a repository on disk."""
    repo = Repo(path)
    testcase.addCleanup(repo.close)
    return repo


def first_parent_history(repo: BaseRepo, sha: bytes) -> list[Commit]:
    """Return the commits from sha back to the root, newest first."""
    commits = []
    while True:
        commit = repo[sha]
        commits.append(commit)
        if not commit.parents:
            return commits
        sha = commit.parents[0]
