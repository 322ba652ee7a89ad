#!/usr/bin/python
# This script clones a remote repository into memory, keeps only the newest
# commits of the branch its HEAD is on and force-pushes the result back.
#
# Example usage:
#  python examples/truncate_remote.py git+ssh://github.com/jelmer/testrepo 5 ~/.ssh/id_ed25519

import sys

from gitrewrite import porcelain
from gitrewrite.log_utils import default_logging_config
from gitrewrite.transport import ANONYMOUS, Credentials

if len(sys.argv) < 3:
    print(f"usage: {sys.argv[0]} URL KEEP [SSH-KEY]")
    sys.exit(1)

default_logging_config()

credentials = ANONYMOUS
if len(sys.argv) > 3:
    with open(sys.argv[3]) as f:
        credentials = Credentials.from_ssh_key(f.read())

before = porcelain.list_recent_commits(sys.argv[1], credentials)
result = porcelain.truncate_history(sys.argv[1], credentials, int(sys.argv[2]))
if result.noop:
    print(f"Only {len(before)} commits, nothing to do")
else:
    print(f"{len(before)} commits reduced to {len(result.chain)}")
    for old, new in result.mapping.items():
        print(old.decode("ascii"), "->", new.decode("ascii"))
