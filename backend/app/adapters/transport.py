import os
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

from app.config import TransportConfig
from app.utils.log import get_logger

log = get_logger("app.adapters.transport", "TRANSPORT")


class TransportError(Exception):
    pass


class TransportConfigError(TransportError):
    """Host or credentials missing; never worth a network attempt."""
    pass


class TransportConnectionError(TransportError):
    """Connection refused / timed out; retried once."""
    pass


class TransportAuthError(TransportError):
    """Credentials rejected; never retried."""
    pass


class TransportVerificationError(TransportError):
    """Local file unreadable or remote size differs from local size."""
    pass


@dataclass
class TransferResult:
    success: bool
    error: str = ""
    delivered: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"success": self.success, "error": self.error, "delivered": list(self.delivered)}


class TransportSession:
    """An open, authenticated session. Backends implement these four calls."""

    def put(self, local_path: str, remote_path: str) -> None:
        raise NotImplementedError

    def size(self, remote_path: str) -> int:
        raise NotImplementedError

    def listdir(self, remote_dir: str) -> List[str]:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class Transporter:
    """
    Delivers files to the partner and verifies each one by remote size.

    Subclasses only know how to open a session; retry, verification,
    abort-on-first-failure and session cleanup live here.
    """

    name = "base"
    max_retries = 1

    def __init__(self, config: TransportConfig, sleep: Callable[[float], None] = None):
        self.config = config
        self.sleep = sleep or time.sleep

    def open_session(self) -> TransportSession:
        raise NotImplementedError

    def remote_path(self, filename: str) -> str:
        return self.config.remote_dir.rstrip("/") + "/" + filename

    def check_config(self) -> None:
        if not self.config.is_configured:
            raise TransportConfigError(
                "Transport credentials not configured. Check FTPS host, username and password."
            )

    def connect(self) -> TransportSession:
        """Open a session, retrying connection failures once after a fixed delay."""
        attempts = 0
        while True:
            attempts += 1
            try:
                return self.open_session()
            except TransportAuthError:
                log.error(f"authentication failed for {self.config.host}; not retrying")
                raise
            except TransportConnectionError as e:
                if attempts > self.max_retries:
                    raise TransportConnectionError(
                        f"Connection failed after {attempts} attempt(s): {e}"
                    ) from e
                log.warning(
                    f"connection attempt {attempts} failed ({e}); retrying in {self.config.retry_delay}s"
                )
                self.sleep(self.config.retry_delay)

    def _push(self, session: TransportSession, filename: str, local_path: str) -> None:
        if not (os.path.isfile(local_path) and os.access(local_path, os.R_OK)):
            raise TransportVerificationError(f"Cannot read local file: {local_path}")
        remote = self.remote_path(filename)
        session.put(local_path, remote)
        local_size = os.path.getsize(local_path)
        remote_size = session.size(remote)
        if remote_size is None or remote_size < 0:
            raise TransportVerificationError(f"Cannot verify remote file size for {filename}")
        if remote_size != local_size:
            raise TransportVerificationError(
                f"Size mismatch for {filename}: local={local_size}, remote={remote_size}"
            )
        log.info(f"delivered {filename} ({local_size} bytes) to {remote}")

    def deliver(self, files: Dict[str, str]) -> TransferResult:
        """
        files: remote filename -> local path, delivered in insertion order.
        Never raises for transport problems; the result carries the error
        and the names that were delivered before it.
        """
        delivered: List[str] = []
        try:
            self.check_config()
            session = self.connect()
        except TransportError as e:
            return TransferResult(success=False, error=str(e), delivered=delivered)

        try:
            for filename, local_path in files.items():
                self._push(session, filename, local_path)
                delivered.append(filename)
        except TransportError as e:
            log.error(f"delivery aborted: {e}")
            return TransferResult(success=False, error=str(e), delivered=delivered)
        except OSError as e:
            log.error(f"delivery aborted: {e}")
            return TransferResult(success=False, error=f"Transfer error: {e}", delivered=delivered)
        finally:
            self._close(session)
        return TransferResult(success=True, delivered=delivered)

    def _close(self, session: TransportSession) -> None:
        try:
            session.close()
        except (OSError, TransportError) as e:
            log.warning(f"error closing session: {e}")

    def test_connection(self) -> Tuple[bool, str]:
        """Connect and list the remote directory without uploading anything."""
        try:
            self.check_config()
            session = self.open_session()
        except TransportError as e:
            return False, f"Connection failed: {e}"
        try:
            listing = session.listdir(self.config.remote_dir)
        except (OSError, TransportError) as e:
            return False, f"Connected but cannot access remote directory {self.config.remote_dir}: {e}"
        finally:
            self._close(session)
        return True, f"Connected successfully. Remote directory contains {len(listing)} items."


def build_transporter(config: TransportConfig, **kwargs) -> Transporter:
    """Pick the backend named by config.backend."""
    from app.adapters.ftps_transport import FtpsTransporter
    from app.adapters.mock_transport import MockTransporter

    backends = {
        FtpsTransporter.name: FtpsTransporter,
        MockTransporter.name: MockTransporter,
    }
    try:
        cls = backends[config.backend]
    except KeyError:
        raise TransportConfigError(f"Unknown transport backend: {config.backend!r}")
    return cls(config, **kwargs)
