# cli.py -- Command line interface for gitrewrite
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

"""Command line interface for gitrewrite.

Each subcommand works on a remote repository given by URL or local path:

  gitrewrite log [--max N] [--json] URL
  gitrewrite append [-m MESSAGE] URL
  gitrewrite truncate URL KEEP
  gitrewrite delete-commit URL SHA
  gitrewrite amend URL SHA MESSAGE
"""

import argparse
import logging
import signal
import sys
import time
import types
from collections.abc import Sequence
from typing import Optional

from dulwich.repo import InvalidUserIdentity

from . import porcelain
from .config import Identity, set_default_identity
from .errors import GitRewriteError
from .log_utils import default_logging_config
from .rewrite import RewriteResult
from .transport import Credentials

logger = logging.getLogger("gitrewrite.cli")


def signal_int(signal: int, frame: Optional[types.FrameType]) -> None:
    """Handle interrupt signal by exiting.

    Args:
        signal: Signal number
        frame: Current stack frame
    """
    sys.exit(1)


def _parse_identity(value: str) -> Identity:
    try:
        return Identity.parse(value)
    except InvalidUserIdentity as e:
        raise argparse.ArgumentTypeError(f"invalid identity {value!r}: {e}") from e


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, not {number}")
    return number


def _read_ssh_key(path: str) -> str:
    try:
        with open(path) as f:
            return f.read()
    except OSError as e:
        raise argparse.ArgumentTypeError(
            f"cannot read SSH key {path}: {e.strerror}"
        ) from e


def _make_parser(prog: str, rewrites: bool = False) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=f"gitrewrite {prog}")
    parser.add_argument("url", help="Remote repository URL or path")
    parser.add_argument(
        "--ssh-key",
        metavar="FILE",
        type=_read_ssh_key,
        help="Private key to use for SSH, read into memory",
    )
    parser.add_argument("--ssh-key-passphrase", help="Passphrase of the SSH key")
    parser.add_argument("--username", help="User name for the remote")
    parser.add_argument("--password", help="Password for HTTP(S) remotes")
    parser.add_argument(
        "--identity",
        type=_parse_identity,
        help='Committer identity, as "Name <email>"',
    )
    if rewrites:
        parser.add_argument(
            "--force-with-lease",
            action="store_true",
            help="Refuse to overwrite the remote branch if it moved meanwhile",
        )
    return parser


def _credentials(parsed_args: argparse.Namespace) -> Credentials:
    return Credentials(
        username=parsed_args.username,
        password=parsed_args.password,
        ssh_key=parsed_args.ssh_key,
        ssh_key_passphrase=parsed_args.ssh_key_passphrase,
    )


def _apply_identity(parsed_args: argparse.Namespace) -> None:
    if parsed_args.identity is not None:
        set_default_identity(parsed_args.identity)


def _report(result: RewriteResult) -> None:
    if result.noop:
        sys.stdout.write(f"Nothing to rewrite: {len(result.chain)} commits.\n")
        return
    sys.stdout.write(
        f"Rewrote {len(result.mapping)} commits; "
        f"{result.old_tip.decode('ascii')} -> {result.new_tip.decode('ascii')}\n"
    )


class Command:
    """A gitrewrite subcommand."""

    def run(self, args: Sequence[str]) -> Optional[int]:
        """Run the command."""
        raise NotImplementedError(self.run)


class cmd_log(Command):
    """List recent commits of a remote."""

    def run(self, args: Sequence[str]) -> None:
        parser = _make_parser("log")
        parser.add_argument(
            "--max", type=int, default=0, help="Number of commits to show (0: all)"
        )
        parser.add_argument("--json", action="store_true", help="Output JSON")
        parsed_args = parser.parse_args(args)
        summaries = porcelain.list_recent_commits(
            parsed_args.url, _credentials(parsed_args), parsed_args.max
        )
        if parsed_args.json:
            sys.stdout.write(porcelain.commits_to_json(summaries) + "\n")
            return
        for summary in summaries:
            date = time.strftime(
                "%Y-%m-%d %H:%M:%S", time.localtime(summary.timestamp_millis // 1000)
            )
            sys.stdout.write(f"commit {summary.hash}\n")
            sys.stdout.write(
                f"Author: {summary.author_name} <{summary.author_email}>\n"
            )
            sys.stdout.write(f"Date:   {date}\n\n")
            for line in summary.message.splitlines():
                sys.stdout.write(f"    {line}\n")
            sys.stdout.write("\n")


class cmd_append(Command):
    """Append a commit that rewrites README.MD with random content."""

    def run(self, args: Sequence[str]) -> None:
        parser = _make_parser("append")
        parser.add_argument(
            "-m", "--message", default="Update README.MD", help="Commit message"
        )
        parsed_args = parser.parse_args(args)
        _apply_identity(parsed_args)
        sha = porcelain.append_readme_commit(
            parsed_args.url, _credentials(parsed_args), parsed_args.message
        )
        sys.stdout.write(sha.decode("ascii") + "\n")


class cmd_truncate(Command):
    """Keep only the newest commits of the remote branch."""

    def run(self, args: Sequence[str]) -> None:
        parser = _make_parser("truncate", rewrites=True)
        parser.add_argument("keep", type=_positive_int, help="Commits to keep")
        parsed_args = parser.parse_args(args)
        _apply_identity(parsed_args)
        _report(
            porcelain.truncate_history(
                parsed_args.url,
                _credentials(parsed_args),
                parsed_args.keep,
                lease=parsed_args.force_with_lease,
            )
        )


class cmd_delete_commit(Command):
    """Remove a commit from the history of the remote branch."""

    def run(self, args: Sequence[str]) -> None:
        parser = _make_parser("delete-commit", rewrites=True)
        parser.add_argument("sha", help="Commit to delete")
        parsed_args = parser.parse_args(args)
        _apply_identity(parsed_args)
        _report(
            porcelain.delete_commit(
                parsed_args.url,
                _credentials(parsed_args),
                parsed_args.sha,
                lease=parsed_args.force_with_lease,
            )
        )


class cmd_amend(Command):
    """Change the message of a commit in the history of the remote branch."""

    def run(self, args: Sequence[str]) -> None:
        parser = _make_parser("amend", rewrites=True)
        parser.add_argument("sha", help="Commit to amend")
        parser.add_argument("message", help="New commit message")
        parsed_args = parser.parse_args(args)
        _apply_identity(parsed_args)
        _report(
            porcelain.amend_commit_message(
                parsed_args.url,
                _credentials(parsed_args),
                parsed_args.sha,
                parsed_args.message,
                lease=parsed_args.force_with_lease,
            )
        )


commands = {
    "amend": cmd_amend,
    "append": cmd_append,
    "delete-commit": cmd_delete_commit,
    "log": cmd_log,
    "truncate": cmd_truncate,
}


def main(argv: Optional[Sequence[str]] = None) -> Optional[int]:
    """Main entry point for the gitrewrite CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code or None
    """
    if argv is None:
        argv = sys.argv[1:]

    # Parse only the global options, the command and its arguments follow
    parser = argparse.ArgumentParser(
        prog="gitrewrite",
        description="Rewrite the history of remote Git repositories",
        add_help=False,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug output"
    )
    parser.add_argument("--help", "-h", action="store_true", help="Show help")
    global_args, remaining = parser.parse_known_args(argv)

    if global_args.help and remaining:
        # Let the subcommand show its own help
        remaining.append("--help")
    elif global_args.help or not remaining:
        parser = argparse.ArgumentParser(
            prog="gitrewrite",
            description="Rewrite the history of remote Git repositories",
        )
        parser.add_argument(
            "-v", "--verbose", action="store_true", help="Show debug output"
        )
        parser.add_argument(
            "command",
            nargs="?",
            help=f"Command to run. Available: {', '.join(sorted(commands.keys()))}",
        )
        parser.print_help()
        return 1

    default_logging_config(verbose=global_args.verbose)

    cmd = remaining[0]
    cmd_args = remaining[1:]

    try:
        cmd_kls = commands[cmd]
    except KeyError:
        logger.fatal("No such subcommand: %s", cmd)
        return 1
    try:
        return cmd_kls().run(cmd_args)
    except GitRewriteError as e:
        logger.error("%s", e)
        return 1


def _main() -> None:
    signal.signal(signal.SIGINT, signal_int)

    sys.exit(main())


if __name__ == "__main__":
    _main()
