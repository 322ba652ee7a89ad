# transport.py -- Cloning from and pushing to remotes
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

"""Transport adapter.

Remote repositories are cloned in full into a MemoryRepo, rewritten there and
force-pushed back. Any URL Dulwich understands works: ssh, http(s), git://,
file:// and plain local paths.

SSH private keys can be supplied as text. They are loaded with paramiko and
used through Dulwich's ParamikoSSHVendor, so the key never touches the disk.
Host keys are not verified.
"""

__all__ = [
    "ClonedRepository",
    "Credentials",
    "PushStatus",
    "Transport",
]

import io
from collections.abc import Callable, Iterator, Set
from contextlib import contextmanager
from enum import Enum
from typing import Optional

import paramiko
from dulwich.client import (
    GitClient,
    HTTPProxyUnauthorized,
    HTTPUnauthorized,
    SSHGitClient,
    get_transport_and_path,
)
from dulwich.config import Config
from dulwich.contrib.paramiko_vendor import ParamikoSSHVendor
from dulwich.errors import GitProtocolError, HangupException, NotGitRepository
from dulwich.pack import UnpackedObject
from dulwich.refs import HEADREF, LOCAL_BRANCH_PREFIX
from dulwich.repo import MemoryRepo

from .errors import AuthError, ConcurrentModification, TransportError
from .log_utils import getLogger

logger = getLogger(__name__)

# Private key types tried, in order, when loading a key from text
_KEY_CLASSES: tuple[type[paramiko.PKey], ...] = (
    paramiko.Ed25519Key,
    paramiko.ECDSAKey,
    paramiko.RSAKey,
)

# Suffix of the peeled entries servers advertise for annotated tags
_PEELED_SUFFIX = b"^{}"

# Remote stderr fragments that mean the credentials were refused
_AUTH_FAILURE_MARKERS = (
    b"Permission denied",
    b"Authentication failed",
    b"access denied",
)


class PushStatus(Enum):
    """Outcome of a successful push."""

    UPDATED = "updated"
    ALREADY_UP_TO_DATE = "already-up-to-date"


class Credentials:
    """Credentials for accessing a remote.

    Attributes:
      username: User name for SSH or HTTP(S)
      password: Password for HTTP(S) basic authentication or SSH
      ssh_key: PEM/OpenSSH encoded private key text
      ssh_key_passphrase: Passphrase protecting ssh_key
      key_filename: Path to a private key file, used by the ssh command
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        ssh_key: Optional[str] = None,
        ssh_key_passphrase: Optional[str] = None,
        key_filename: Optional[str] = None,
    ) -> None:
        self.username = username
        self.password = password
        self.ssh_key = ssh_key
        self.ssh_key_passphrase = ssh_key_passphrase
        self.key_filename = key_filename

    @classmethod
    def from_ssh_key(
        cls,
        ssh_key: str,
        passphrase: Optional[str] = None,
        username: Optional[str] = None,
    ) -> "Credentials":
        """Credentials consisting of an SSH private key given as text.

        Without a username, the one in the URL is used, or "git".
        """
        return cls(username=username, ssh_key=ssh_key, ssh_key_passphrase=passphrase)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(username={self.username!r}, "
            f"password={'***' if self.password else None}, "
            f"ssh_key={'***' if self.ssh_key else None}, "
            f"key_filename={self.key_filename!r})"
        )

    def load_ssh_key(self) -> Optional[paramiko.PKey]:
        """Parse ssh_key.

        Returns: The private key, or None if no key text was given

        Raises:
          paramiko.SSHException: if the key cannot be parsed
        """
        if self.ssh_key is None:
            return None
        last_error: Optional[paramiko.SSHException] = None
        for key_cls in _KEY_CLASSES:
            try:
                return key_cls.from_private_key(
                    io.StringIO(self.ssh_key), password=self.ssh_key_passphrase
                )
            except paramiko.PasswordRequiredException:
                raise
            except paramiko.SSHException as e:
                last_error = e
        assert last_error is not None
        raise last_error


ANONYMOUS = Credentials()


class ClonedRepository:
    """Local, in-memory copy of a remote repository.

    Attributes:
      url: Location it was cloned from
      repo: The MemoryRepo holding all objects and branches
      remote_refs: Refs as advertised by the remote when cloned
    """

    def __init__(
        self, url: str, repo: MemoryRepo, remote_refs: dict[bytes, bytes]
    ) -> None:
        self.url = url
        self.repo = repo
        self.remote_refs = remote_refs

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.url!r})"


def _is_auth_failure(exc: HangupException) -> bool:
    for line in exc.stderr_lines or []:
        if any(marker in line for marker in _AUTH_FAILURE_MARKERS):
            return True
    return False


@contextmanager
def _translate_errors(phase: str, url: str) -> Iterator[None]:
    try:
        yield
    except (HTTPUnauthorized, HTTPProxyUnauthorized) as exc:
        raise AuthError(url, str(exc)) from exc
    except paramiko.AuthenticationException as exc:
        raise AuthError(url, str(exc) or "authentication rejected") from exc
    except HangupException as exc:
        if _is_auth_failure(exc):
            raise AuthError(url, str(exc)) from exc
        raise TransportError(phase, url, str(exc)) from exc
    except (GitProtocolError, NotGitRepository, paramiko.SSHException, OSError) as exc:
        raise TransportError(phase, url, str(exc) or type(exc).__name__) from exc


def _log_progress(data: bytes) -> None:
    logger.debug("remote: %s", data.decode("utf-8", "replace").rstrip())


class Transport:
    """Clones remotes and pushes branches back to them."""

    def __init__(self, config: Optional[Config] = None) -> None:
        """Create a Transport.

        Args:
          config: Git configuration consulted for url rewrites, proxies and
            the ssh command
        """
        self.config = config

    def _open_client(
        self, url: str, credentials: Credentials, operation: str
    ) -> tuple[GitClient, str]:
        kwargs = {}
        if credentials.username is not None:
            kwargs["username"] = credentials.username
        if credentials.password is not None:
            kwargs["password"] = credentials.password
        try:
            client, path = get_transport_and_path(
                url, config=self.config, operation=operation, quiet=True, **kwargs
            )
        except ValueError as exc:
            raise TransportError(
                "clone" if operation == "pull" else "push", url, str(exc)
            ) from exc
        if isinstance(client, SSHGitClient):
            if credentials.key_filename is not None:
                client.key_filename = credentials.key_filename
            try:
                pkey = credentials.load_ssh_key()
            except paramiko.SSHException as exc:
                raise AuthError(url, f"unusable SSH key: {exc}") from exc
            if pkey is not None:
                client.ssh_vendor = ParamikoSSHVendor(pkey=pkey)
                if client.username is None:
                    client.username = credentials.username or "git"
        return client, path

    def fetch_full_history(
        self, url: str, credentials: Credentials = ANONYMOUS
    ) -> ClonedRepository:
        """Clone every branch of a remote into memory.

        Remote branches become local branches of the same name and the
        remote HEAD becomes the local HEAD.

        Raises:
          AuthError: if the remote refused the credentials
          TransportError: if the clone failed otherwise
        """
        client, path = self._open_client(url, credentials, "pull")
        repo = MemoryRepo()
        logger.info("cloning %s", url)
        with _translate_errors("clone", url):
            result = client.fetch(path.encode(), repo, progress=_log_progress)
        remote_refs = {
            name: sha
            for name, sha in result.refs.items()
            if sha is not None and not name.endswith(_PEELED_SUFFIX)
        }
        for name, sha in remote_refs.items():
            if name.startswith(LOCAL_BRANCH_PREFIX):
                repo.refs[name] = sha
        head_target = result.symrefs.get(HEADREF)
        if head_target is not None:
            repo.refs.set_symbolic_ref(HEADREF, head_target)
        elif HEADREF in remote_refs:
            repo.refs[HEADREF] = remote_refs[HEADREF]
        logger.debug("cloned %d refs from %s", len(remote_refs), url)
        return ClonedRepository(url, repo, remote_refs)

    def force_push(
        self,
        clone: ClonedRepository,
        branch: bytes,
        credentials: Credentials = ANONYMOUS,
        *,
        lease: bool = False,
    ) -> PushStatus:
        """Overwrite a remote branch with the local branch of the same name.

        Args:
          clone: Repository holding the new branch value
          branch: Full ref name, e.g. refs/heads/main
          credentials: Credentials for the remote
          lease: Refuse to push if the remote branch no longer has the
            value it had when the clone was made

        Raises:
          ConcurrentModification: if lease is set and the branch moved
          AuthError: if the remote refused the credentials
          TransportError: if the push failed or the remote rejected it
        """
        return self.push(clone, branch, credentials, force=True, lease=lease)

    def push(
        self,
        clone: ClonedRepository,
        branch: bytes,
        credentials: Credentials = ANONYMOUS,
        *,
        force: bool = False,
        lease: bool = False,
    ) -> PushStatus:
        """Push the local branch to the remote branch of the same name.

        Without force the remote branch must still have the value it had
        when the clone was made, so that the push only adds to it.

        Args:
          clone: Repository holding the new branch value
          branch: Full ref name, e.g. refs/heads/main
          credentials: Credentials for the remote
          force: Overwrite the remote branch whatever its current value
          lease: With force, still refuse to push if the remote branch
            moved since the clone was made

        Raises:
          ConcurrentModification: if lease is set and the branch moved
          AuthError: if the remote refused the credentials
          TransportError: if the push failed or the remote rejected it,
            including a non-fast-forward update without force
        """
        url = clone.url
        new_sha = clone.repo.refs[branch]
        client, path = self._open_client(url, credentials, "push")
        remote_old: dict[bytes, Optional[bytes]] = {}

        def update_refs(refs: dict[bytes, bytes]) -> dict[bytes, bytes]:
            current = refs.get(branch)
            remote_old[branch] = current
            expected = clone.remote_refs.get(branch)
            if current == expected:
                return {branch: new_sha}
            if lease:
                raise ConcurrentModification(branch, expected, current)
            if not force:
                raise TransportError(
                    "push",
                    url,
                    f"non-fast-forward: {branch.decode('utf-8', 'replace')} "
                    "was updated on the remote since it was fetched",
                )
            return {branch: new_sha}

        def generate_pack_data(
            have: Set[bytes],
            want: Set[bytes],
            *,
            ofs_delta: bool = False,
            progress: Optional[Callable[..., None]] = None,
        ) -> tuple[int, Iterator[UnpackedObject]]:
            return clone.repo.generate_pack_data(
                set(have), set(want), progress=progress, ofs_delta=ofs_delta
            )

        logger.info("pushing %s to %s", branch.decode("utf-8", "replace"), url)
        with _translate_errors("push", url):
            result = client.send_pack(
                path.encode(),
                update_refs,
                generate_pack_data=generate_pack_data,
                progress=_log_progress,
            )
        for ref, error in (result.ref_status or {}).items():
            if error is not None:
                raise TransportError(
                    "push", url, f"{ref.decode('utf-8', 'replace')}: {error}"
                )
        if remote_old.get(branch) == new_sha:
            logger.info("%s is already up to date", url)
            return PushStatus.ALREADY_UP_TO_DATE
        return PushStatus.UPDATED
