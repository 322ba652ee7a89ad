# records.py -- In-memory commit records and ancestry chains
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

"""Commit records and the linear chains they form.

A CommitRecord is a read-only snapshot of a single-parent commit. Chains come
in two flavours that are deliberately distinct types: TipFirstChain is what a
walk from a branch tip produces, RootFirstChain is the order in which
rewritten commits have to be created. Converting between them is always an
explicit call.
"""

__all__ = [
    "AncestryChain",
    "CommitRecord",
    "CommitSummary",
    "RootFirstChain",
    "Signature",
    "TipFirstChain",
]

from collections.abc import Iterable, Iterator, Sequence
from typing import NamedTuple, Optional, Union, overload

from dulwich.objects import Commit

from .errors import CommitNotFound, MergeCommitUnsupported, TraversalError


class Signature(NamedTuple):
    """Who produced a commit, and when.

    Attributes:
      identity: Raw ``Name <email>`` bytes, kept verbatim
      time: Seconds since the epoch
      timezone: Offset from UTC in seconds
    """

    identity: bytes
    time: int
    timezone: int

    @property
    def name(self) -> bytes:
        return self.identity.partition(b"<")[0].strip()

    @property
    def email(self) -> bytes:
        before, sep, rest = self.identity.partition(b"<")
        if not sep:
            return b""
        return rest.partition(b">")[0]


class CommitRecord(NamedTuple):
    """A single-parent commit.

    Records read from a store carry their sha; records synthesized by a
    rewrite have sha None until they are written.
    """

    sha: Optional[bytes]
    parent: Optional[bytes]
    tree: bytes
    author: Signature
    committer: Signature
    message: bytes
    encoding: Optional[bytes] = None

    @classmethod
    def from_commit(cls, commit: Commit) -> "CommitRecord":
        """Snapshot a Dulwich commit.

        Raises:
          MergeCommitUnsupported: if the commit has more than one parent
        """
        parents = commit.parents
        if len(parents) > 1:
            raise MergeCommitUnsupported(commit.id, len(parents))
        return cls(
            sha=commit.id,
            parent=parents[0] if parents else None,
            tree=commit.tree,
            author=Signature(commit.author, commit.author_time, commit.author_timezone),
            committer=Signature(
                commit.committer, commit.commit_time, commit.commit_timezone
            ),
            message=commit.message,
            encoding=commit.encoding,
        )

    def to_commit(self) -> Commit:
        """Build the Dulwich commit object for this record."""
        commit = Commit()
        commit.tree = self.tree
        commit.parents = [self.parent] if self.parent is not None else []
        commit.author = self.author.identity
        commit.author_time = self.author.time
        commit.author_timezone = self.author.timezone
        commit.committer = self.committer.identity
        commit.commit_time = self.committer.time
        commit.commit_timezone = self.committer.timezone
        commit.message = self.message
        if self.encoding is not None:
            commit.encoding = self.encoding
        return commit

    @property
    def is_root(self) -> bool:
        return self.parent is None


class AncestryChain(Sequence[CommitRecord]):
    """Immutable linear run of commits; see the subclasses for order."""

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[CommitRecord]) -> None:
        self._records = tuple(records)
        self._check_linked()

    def _oldest_first(self) -> Iterator[CommitRecord]:
        raise NotImplementedError(self._oldest_first)

    def _check_linked(self) -> None:
        seen: set[bytes] = set()
        previous: Optional[CommitRecord] = None
        for record in self._oldest_first():
            if record.sha is None:
                raise TraversalError("chain contains an unwritten commit")
            if record.sha in seen:
                raise TraversalError(
                    f"commit {record.sha.decode('ascii')} appears twice in history"
                )
            seen.add(record.sha)
            expected = previous.sha if previous is not None else None
            if record.parent != expected:
                raise TraversalError(
                    f"commit {record.sha.decode('ascii')} is not linked to "
                    "its predecessor"
                )
            previous = record

    @overload
    def __getitem__(self, index: int) -> CommitRecord: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[CommitRecord]: ...

    def __getitem__(
        self, index: Union[int, slice]
    ) -> Union[CommitRecord, Sequence[CommitRecord]]:
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CommitRecord]:
        return iter(self._records)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        assert isinstance(other, AncestryChain)
        return self._records == other._records

    def __hash__(self) -> int:
        return hash((type(self), self._records))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self.shas())!r})"

    def shas(self) -> list[bytes]:
        """SHAs of the records, in this chain's order."""
        return [record.sha for record in self._records if record.sha is not None]

    def index_of(self, sha: bytes) -> int:
        """Position of the record with the given sha.

        Raises:
          CommitNotFound: if no record has that sha
        """
        for i, record in enumerate(self._records):
            if record.sha == sha:
                return i
        raise CommitNotFound(sha)

    @property
    def tip(self) -> CommitRecord:
        raise NotImplementedError

    @property
    def root(self) -> CommitRecord:
        raise NotImplementedError


class TipFirstChain(AncestryChain):
    """Chain ordered newest first, as produced by walking parents."""

    __slots__ = ()

    def _oldest_first(self) -> Iterator[CommitRecord]:
        return reversed(self._records)

    @property
    def tip(self) -> CommitRecord:
        return self._records[0]

    @property
    def root(self) -> CommitRecord:
        return self._records[-1]

    def root_first(self) -> "RootFirstChain":
        return RootFirstChain(reversed(self._records))


class RootFirstChain(AncestryChain):
    """Chain ordered oldest first, the order rewritten commits are built in."""

    __slots__ = ()

    def _oldest_first(self) -> Iterator[CommitRecord]:
        return iter(self._records)

    @property
    def tip(self) -> CommitRecord:
        return self._records[-1]

    @property
    def root(self) -> CommitRecord:
        return self._records[0]

    def tip_first(self) -> TipFirstChain:
        return TipFirstChain(reversed(self._records))


class CommitSummary(NamedTuple):
    """Short description of a commit, as reported by list_recent_commits."""

    hash: str
    author_name: str
    author_email: str
    message: str
    timestamp_millis: int

    @classmethod
    def from_commit(cls, commit: Commit) -> "CommitSummary":
        encoding = (commit.encoding or b"utf-8").decode("ascii", "replace")

        def decode(value: bytes) -> str:
            try:
                return value.decode(encoding, "replace")
            except LookupError:
                # Unknown declared encoding
                return value.decode("utf-8", "replace")

        author = Signature(commit.author, commit.author_time, commit.author_timezone)
        return cls(
            hash=commit.id.decode("ascii"),
            author_name=decode(author.name),
            author_email=decode(author.email),
            message=decode(commit.message),
            timestamp_millis=commit.author_time * 1000,
        )

    def as_dict(self) -> dict[str, Union[str, int]]:
        """Return the summary keyed the way the JSON listing is keyed."""
        return {
            "hash": self.hash,
            "author": self.author_name,
            "email": self.author_email,
            "message": self.message,
            "date": self.timestamp_millis,
        }
