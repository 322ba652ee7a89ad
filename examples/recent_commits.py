"""Recent commits.

This trivial script prints the newest commits of a remote repository as JSON.

Example usage:
  1. python examples/recent_commits.py https://github.com/jelmer/dulwich
  2. python examples/recent_commits.py https://github.com/jelmer/dulwich 10
"""

import sys

from gitrewrite import porcelain

if len(sys.argv) < 2:
    print(f"usage: {sys.argv[0]} URL [COUNT]")
    sys.exit(1)

count = int(sys.argv[2]) if len(sys.argv) > 2 else 0
print(porcelain.commits_to_json(porcelain.list_recent_commits(sys.argv[1], max_entries=count)))
