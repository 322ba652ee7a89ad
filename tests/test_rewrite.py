# test_rewrite.py -- Tests for gitrewrite.rewrite
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

"""Tests for gitrewrite.rewrite."""

from dulwich.repo import MemoryRepo

from gitrewrite.errors import CannotDeleteSoleCommit, CommitNotFound, EncodeOrStoreError
from gitrewrite.records import CommitRecord, RootFirstChain, Signature
from gitrewrite.rewrite import (
    Amend,
    ChainRewriter,
    Delete,
    RewritePolicy,
    Truncate,
    rewrite_branch,
)
from gitrewrite.store import RepoObjectStore
from gitrewrite.walk import walk_ancestry

from . import TestCase
from .utils import REWRITE_TIME, REWRITER, build_linear_history, fixed_clock


class _FailingStore(RepoObjectStore):
    """Store that refuses to write more than a given number of commits."""

    def __init__(self, repo, allowed):
        super().__init__(repo)
        self.allowed = allowed

    def write_commit(self, record: CommitRecord) -> bytes:
        if self.allowed == 0:
            raise EncodeOrStoreError("disk full", record.sha)
        self.allowed -= 1
        return super().write_commit(record)


class RewriteTestCase(TestCase):
    """Base class for tests that rewrite a small linear history."""

    messages = [b"C0\n", b"C1\n", b"C2\n"]

    def setUp(self) -> None:
        super().setUp()
        self.repo = MemoryRepo()
        self.shas = build_linear_history(self.repo, self.messages)
        self.store = RepoObjectStore(self.repo)
        self.rewriter = ChainRewriter(
            self.store, REWRITER, clock=fixed_clock(), timezone=0
        )
        self.chain = walk_ancestry(self.store, self.shas[-1])

    def rewrite(self, policy: RewritePolicy):
        return self.rewriter.rewrite(self.chain, policy)

    def assertRewrittenFrom(self, original: bytes, new: CommitRecord) -> None:
        """Check that new carries over everything but parent and committer."""
        old = self.store.read_commit(original)
        self.assertEqual(old.tree, new.tree)
        self.assertEqual(old.author, new.author)
        self.assertEqual(Signature(bytes(REWRITER), REWRITE_TIME, 0), new.committer)
        self.assertEqual(new, self.store.read_commit(new.sha))


class TruncateTests(RewriteTestCase):
    messages = [b"C0\n", b"C1\n", b"C2\n", b"C3\n", b"C4\n"]

    def test_keep_less_than_one(self) -> None:
        self.assertRaises(ValueError, Truncate, 0)
        self.assertRaises(ValueError, Truncate, -3)

    def test_truncate(self) -> None:
        result = self.rewrite(Truncate(2))
        self.assertFalse(result.noop)
        self.assertEqual(self.shas[-1], result.old_tip)
        self.assertEqual(2, len(result.chain))
        self.assertIsNone(result.chain.root.parent)
        self.assertEqual(result.chain.root.sha, result.chain.tip.parent)
        self.assertEqual(result.new_tip, result.chain.tip.sha)
        self.assertEqual([b"C3\n", b"C4\n"], [r.message for r in result.chain])
        self.assertRewrittenFrom(self.shas[3], result.chain.root)
        self.assertRewrittenFrom(self.shas[4], result.chain.tip)
        self.assertEqual(
            {
                self.shas[3]: result.chain.root.sha,
                self.shas[4]: result.chain.tip.sha,
            },
            result.mapping,
        )

    def test_keep_one(self) -> None:
        result = self.rewrite(Truncate(1))
        self.assertEqual(1, len(result.chain))
        self.assertTrue(result.chain.tip.is_root)
        self.assertRewrittenFrom(self.shas[4], result.chain.tip)

    def test_nothing_to_truncate(self) -> None:
        for keep in (5, 6, 100):
            result = self.rewrite(Truncate(keep))
            self.assertTrue(result.noop)
            self.assertEqual(result.old_tip, result.new_tip)
            self.assertEqual({}, result.mapping)
            self.assertEqual(self.shas, result.chain.shas())

    def test_new_history_is_walkable(self) -> None:
        result = self.rewrite(Truncate(3))
        walked = walk_ancestry(self.store, result.new_tip)
        self.assertEqual(result.chain, walked.root_first())

    def test_originals_untouched(self) -> None:
        before = set(self.repo.object_store)
        self.rewrite(Truncate(2))
        self.assertTrue(before.issubset(set(self.repo.object_store)))
        self.assertEqual(self.shas[-1], self.repo.refs[b"refs/heads/master"])
        self.assertEqual(self.chain, walk_ancestry(self.store, self.shas[-1]))


class DeleteTests(RewriteTestCase):
    def test_delete_middle(self) -> None:
        result = self.rewrite(Delete(self.shas[1]))
        self.assertEqual([b"C0\n", b"C2\n"], [r.message for r in result.chain])
        new_c0, new_c2 = result.chain
        self.assertIsNone(new_c0.parent)
        self.assertEqual(new_c0.sha, new_c2.parent)
        self.assertRewrittenFrom(self.shas[0], new_c0)
        self.assertRewrittenFrom(self.shas[2], new_c2)
        self.assertNotIn(self.shas[1], result.mapping)
        self.assertEqual({self.shas[0], self.shas[2]}, set(result.mapping))

    def test_delete_root(self) -> None:
        result = self.rewrite(Delete(self.shas[0]))
        self.assertEqual([b"C1\n", b"C2\n"], [r.message for r in result.chain])
        self.assertIsNone(result.chain.root.parent)
        self.assertRewrittenFrom(self.shas[1], result.chain.root)

    def test_delete_tip(self) -> None:
        result = self.rewrite(Delete(self.shas[2]))
        self.assertEqual([b"C0\n", b"C1\n"], [r.message for r in result.chain])
        self.assertRewrittenFrom(self.shas[1], result.chain.tip)

    def test_target_as_text(self) -> None:
        result = self.rewrite(Delete(self.shas[1].decode("ascii").upper()))
        self.assertEqual(2, len(result.chain))

    def test_not_found(self) -> None:
        before = set(self.repo.object_store)
        with self.assertRaises(CommitNotFound) as cm:
            self.rewrite(Delete(b"d" * 40))
        self.assertEqual(b"d" * 40, cm.exception.sha)
        self.assertEqual(before, set(self.repo.object_store))


class DeleteSoleCommitTests(RewriteTestCase):
    messages = [b"only\n"]

    def test_delete_sole(self) -> None:
        self.assertRaises(CannotDeleteSoleCommit, self.rewrite, Delete(self.shas[0]))

    def test_sole_checked_first(self) -> None:
        self.assertRaises(CannotDeleteSoleCommit, self.rewrite, Delete(b"d" * 40))


class AmendTests(RewriteTestCase):
    def test_amend_middle(self) -> None:
        result = self.rewrite(Amend(self.shas[1], "Better message\n"))
        self.assertEqual(
            [b"C0\n", b"Better message\n", b"C2\n"], [r.message for r in result.chain]
        )
        for old, new in zip(self.shas, result.chain):
            self.assertRewrittenFrom(old, new)
            self.assertNotEqual(old, new.sha)
            self.assertEqual(new.sha, result.mapping[old])

    def test_amend_root(self) -> None:
        result = self.rewrite(Amend(self.shas[0], b"New root\n"))
        self.assertEqual(b"New root\n", result.chain.root.message)
        self.assertEqual(3, len(result.chain))

    def test_amend_tip(self) -> None:
        result = self.rewrite(Amend(self.shas[2], b"New tip\n"))
        self.assertEqual(b"New tip\n", self.repo[result.new_tip].message)

    def test_same_message_still_rewrites(self) -> None:
        result = self.rewrite(Amend(self.shas[1], b"C1\n"))
        self.assertFalse(result.noop)
        self.assertNotEqual(self.shas[-1], result.new_tip)

    def test_not_found(self) -> None:
        self.assertRaises(CommitNotFound, self.rewrite, Amend(b"d" * 40, b"x"))


class ChainRewriterTests(RewriteTestCase):
    def test_single_timestamp(self) -> None:
        times = iter([REWRITE_TIME, REWRITE_TIME + 100])
        rewriter = ChainRewriter(
            self.store, REWRITER, clock=lambda: next(times), timezone=0
        )
        result = rewriter.rewrite(self.chain, Amend(self.shas[0], b"x\n"))
        self.assertEqual(
            {REWRITE_TIME}, {record.committer.time for record in result.chain}
        )

    def test_result_types(self) -> None:
        result = self.rewrite(Truncate(1))
        self.assertIsInstance(result.chain, RootFirstChain)

    def test_store_failure(self) -> None:
        store = _FailingStore(self.repo, allowed=1)
        rewriter = ChainRewriter(store, REWRITER, clock=fixed_clock(), timezone=0)
        with self.assertRaises(EncodeOrStoreError) as cm:
            rewriter.rewrite(self.chain, Amend(self.shas[0], b"x\n"))
        self.assertEqual("disk full", cm.exception.reason)
        self.assertEqual(self.shas[1], cm.exception.sha)
        self.assertEqual(self.shas[-1], self.repo.refs[b"refs/heads/master"])


class RewriteBranchTests(RewriteTestCase):
    def test_rewrite_branch(self) -> None:
        branch, result = rewrite_branch(self.store, self.rewriter, Truncate(1))
        self.assertEqual(b"refs/heads/master", branch)
        self.assertEqual(self.shas[-1], result.old_tip)
        self.assertEqual(self.shas[-1], self.repo.refs[branch])
        self.assertIn(result.new_tip, self.repo.object_store)
