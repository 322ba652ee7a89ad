# errors.py -- Exceptions raised by gitrewrite
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

"""gitrewrite exception classes.

Every error raised by the public operations derives from GitRewriteError, so
callers can tell which phase failed by the exception class alone. None of
these are retried internally.
"""

__all__ = [
    "AuthError",
    "CannotDeleteSoleCommit",
    "CommitNotFound",
    "ConcurrentModification",
    "EncodeOrStoreError",
    "GitRewriteError",
    "MergeCommitUnsupported",
    "NotABranch",
    "TransportError",
    "TraversalError",
]

from typing import Optional, Union


def _sha_str(sha: Union[bytes, str]) -> str:
    if isinstance(sha, bytes):
        return sha.decode("ascii", "replace")
    return sha


class GitRewriteError(Exception):
    """Base class for all gitrewrite errors."""


class AuthError(GitRewriteError):
    """The remote rejected the supplied credentials."""

    def __init__(self, url: str, reason: Optional[str] = None) -> None:
        """Initialize an AuthError.

        Args:
            url: Location of the remote that refused access.
            reason: Optional detail from the transport.
        """
        self.url = url
        self.reason = reason
        message = f"Authentication failed for {url}"
        if reason:
            message += f": {reason}"
        GitRewriteError.__init__(self, message)


class TransportError(GitRewriteError):
    """Cloning from or pushing to the remote failed."""

    def __init__(self, phase: str, url: str, reason: str) -> None:
        """Initialize a TransportError.

        Args:
            phase: Either "clone" or "push".
            url: Location of the remote.
            reason: Message reported by the transport or the remote.
        """
        self.phase = phase
        self.url = url
        self.reason = reason
        GitRewriteError.__init__(self, f"{phase} {url} failed: {reason}")


class NotABranch(GitRewriteError):
    """HEAD does not designate a movable branch."""

    def __init__(self, ref: Optional[bytes]) -> None:
        """Initialize a NotABranch exception.

        Args:
            ref: What HEAD points at, or None if it is detached.
        """
        self.ref = ref
        if ref is None:
            what = "a detached commit"
        else:
            what = ref.decode("utf-8", "replace")
        GitRewriteError.__init__(self, f"HEAD is not on a branch: {what}")


class TraversalError(GitRewriteError):
    """The ancestry of a branch could not be walked."""


class MergeCommitUnsupported(TraversalError):
    """A commit with more than one parent was met while walking ancestry."""

    def __init__(self, sha: bytes, parents: int) -> None:
        """Initialize a MergeCommitUnsupported exception.

        Args:
            sha: SHA of the merge commit.
            parents: Number of parents it has.
        """
        self.sha = sha
        self.parents = parents
        TraversalError.__init__(
            self,
            f"{_sha_str(sha)} has {parents} parents; "
            "only linear history can be rewritten",
        )


class CommitNotFound(GitRewriteError):
    """The requested commit is not part of the branch history."""

    def __init__(self, sha: Union[bytes, str]) -> None:
        """Initialize a CommitNotFound exception.

        Args:
            sha: The SHA that was looked for.
        """
        self.sha = sha
        GitRewriteError.__init__(self, f"commit {_sha_str(sha)} not found in history")


class CannotDeleteSoleCommit(GitRewriteError):
    """Deleting would leave the branch without any commit."""

    def __init__(self) -> None:
        """Initialize a CannotDeleteSoleCommit exception."""
        GitRewriteError.__init__(
            self, "cannot delete the only commit in the repository"
        )


class EncodeOrStoreError(GitRewriteError):
    """A rewritten commit could not be encoded or stored."""

    def __init__(self, reason: str, sha: Optional[bytes] = None) -> None:
        """Initialize an EncodeOrStoreError.

        Args:
            reason: What went wrong.
            sha: SHA of the original commit being rewritten, if known.
        """
        self.sha = sha
        self.reason = reason
        if sha is not None:
            message = f"unable to store rewrite of {_sha_str(sha)}: {reason}"
        else:
            message = f"unable to store commit: {reason}"
        GitRewriteError.__init__(self, message)


class ConcurrentModification(GitRewriteError):
    """The remote branch moved since it was fetched."""

    def __init__(
        self, ref: bytes, expected: Optional[bytes], actual: Optional[bytes]
    ) -> None:
        """Initialize a ConcurrentModification exception.

        Args:
            ref: Name of the remote ref.
            expected: Value seen when the history was fetched.
            actual: Value found on the remote when pushing.
        """
        self.ref = ref
        self.expected = expected
        self.actual = actual
        GitRewriteError.__init__(
            self,
            f"{ref.decode('utf-8', 'replace')} changed on the remote: "
            f"expected {_sha_str(expected or b'(none)')}, "
            f"found {_sha_str(actual or b'(none)')}",
        )
