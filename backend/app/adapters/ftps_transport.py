import ftplib
from typing import Callable, List, Optional

from app.adapters.transport import (
    TransportAuthError,
    TransportConnectionError,
    Transporter,
    TransportError,
    TransportSession,
)
from app.config import TransportConfig


class FtpsSession(TransportSession):
    """Explicit-TLS FTP session: protected data channel, passive, binary."""

    def __init__(self, ftp: ftplib.FTP_TLS):
        self.ftp = ftp

    def put(self, local_path: str, remote_path: str) -> None:
        try:
            with open(local_path, "rb") as fh:
                self.ftp.storbinary(f"STOR {remote_path}", fh)
        except ftplib.all_errors as e:
            raise TransportError(f"Failed to upload to {remote_path}: {e}") from e

    def size(self, remote_path: str) -> Optional[int]:
        try:
            return self.ftp.size(remote_path)
        except ftplib.all_errors as e:
            raise TransportError(f"SIZE failed for {remote_path}: {e}") from e

    def listdir(self, remote_dir: str) -> List[str]:
        try:
            return self.ftp.nlst(remote_dir)
        except ftplib.error_perm as e:
            # empty directories answer 550 on some servers
            if str(e).startswith("550"):
                return []
            raise TransportError(str(e)) from e
        except ftplib.all_errors as e:
            raise TransportError(str(e)) from e

    def close(self) -> None:
        try:
            self.ftp.quit()
        except ftplib.all_errors:
            self.ftp.close()


class FtpsTransporter(Transporter):
    name = "ftps"

    def __init__(
        self,
        config: TransportConfig,
        sleep: Callable[[float], None] = None,
        ftp_factory: Callable[..., ftplib.FTP_TLS] = ftplib.FTP_TLS,
    ):
        super().__init__(config, sleep=sleep)
        self.ftp_factory = ftp_factory

    def open_session(self) -> FtpsSession:
        cfg = self.config
        ftp = self.ftp_factory(timeout=cfg.timeout)
        try:
            ftp.connect(cfg.host, cfg.port, timeout=cfg.timeout)
        except ftplib.all_errors as e:
            ftp.close()
            raise TransportConnectionError(f"FTPS connection failed to {cfg.host}:{cfg.port}: {e}") from e

        try:
            ftp.login(cfg.username, cfg.password)
        except ftplib.error_perm as e:
            ftp.close()
            raise TransportAuthError(f"FTPS authentication failed for {cfg.host}: {e}") from e
        except ftplib.all_errors as e:
            ftp.close()
            raise TransportConnectionError(f"FTPS login interrupted for {cfg.host}: {e}") from e

        try:
            ftp.prot_p()
            ftp.set_pasv(True)
            ftp.voidcmd("TYPE I")
        except ftplib.all_errors as e:
            ftp.close()
            raise TransportConnectionError(f"FTPS session setup failed on {cfg.host}: {e}") from e
        return FtpsSession(ftp)
