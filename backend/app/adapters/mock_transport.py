import os
import time
from typing import Dict, List, Optional, Set

from app.adapters.transport import (
    TransportAuthError,
    TransportConnectionError,
    Transporter,
    TransportError,
    TransportSession,
)
from app.config import TransportConfig


class MockRemote:
    """In-memory stand-in for the partner's server: remote path -> bytes."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.sessions_opened = 0
        self.sessions_closed = 0


class MockSession(TransportSession):
    def __init__(self, transporter: "MockTransporter"):
        self.t = transporter
        self.remote = transporter.remote

    def put(self, local_path: str, remote_path: str) -> None:
        name = os.path.basename(remote_path)
        if name in self.t.fail_uploads:
            raise TransportError(f"Failed to upload {name} to {remote_path}")
        with open(local_path, "rb") as fh:
            data = fh.read()
        if name in self.t.truncate_uploads:
            data = data[:-1]
        time.sleep(self.t.delay)
        self.remote.files[remote_path] = data

    def size(self, remote_path: str) -> Optional[int]:
        data = self.remote.files.get(remote_path)
        return None if data is None else len(data)

    def listdir(self, remote_dir: str) -> List[str]:
        prefix = remote_dir.rstrip("/") + "/"
        return [p for p in self.remote.files if p.startswith(prefix)]

    def close(self) -> None:
        self.remote.sessions_closed += 1


class MockTransporter(Transporter):
    """
    Synchronous in-memory transport for development and tests.

    connect_failures: number of upcoming connection attempts that fail
    reject_auth: every login is refused
    fail_uploads / truncate_uploads: filenames whose upload errors out or
        lands one byte short (to exercise size verification)
    """

    name = "mock"

    def __init__(
        self,
        config: TransportConfig,
        sleep=None,
        remote: MockRemote = None,
        connect_failures: int = 0,
        reject_auth: bool = False,
        fail_uploads: Set[str] = None,
        truncate_uploads: Set[str] = None,
        delay_ms: int = 0,
    ):
        super().__init__(config, sleep=sleep)
        self.remote = remote or MockRemote()
        self.connect_failures = connect_failures
        self.reject_auth = reject_auth
        self.fail_uploads = set(fail_uploads or ())
        self.truncate_uploads = set(truncate_uploads or ())
        self.delay = delay_ms / 1000.0
        self.connect_attempts = 0

    def open_session(self) -> MockSession:
        self.connect_attempts += 1
        if self.connect_failures > 0:
            self.connect_failures -= 1
            raise TransportConnectionError(f"Connection refused by {self.config.host}")
        if self.reject_auth:
            raise TransportAuthError(f"Authentication failed for {self.config.host}")
        self.remote.sessions_opened += 1
        return MockSession(self)
