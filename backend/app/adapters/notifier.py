import smtplib
from email.message import EmailMessage
from typing import List, Sequence

from app.utils.log import get_logger

log = get_logger("app.adapters.notifier", "NOTIFY")


class Notifier:
    """Outbound alerts about export runs."""

    def send(self, subject: str, body: str) -> None:
        raise NotImplementedError


class LogNotifier(Notifier):
    """Writes alerts to the log only; used when no recipients are configured."""

    def __init__(self):
        self.sent: List[tuple] = []

    def send(self, subject: str, body: str) -> None:
        self.sent.append((subject, body))
        log.info(f"{subject}\n{body}")


class EmailNotifier(Notifier):
    def __init__(self, recipients: Sequence[str], host: str, port: int = 25, sender: str = "export@localhost"):
        self.recipients = list(recipients)
        self.host = host
        self.port = port
        self.sender = sender

    def send(self, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(self.recipients)
        msg.set_content(body)
        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            smtp.send_message(msg)
        log.info(f"sent '{subject}' to {len(self.recipients)} recipient(s)")


def build_notifier(recipients: Sequence[str], settings) -> Notifier:
    """Email when `recipients` and an SMTP host are set; log-only otherwise."""
    recipients = list(recipients or ())
    host = settings.get("SMTP_HOST", "")
    if recipients and host:
        return EmailNotifier(
            recipients,
            host,
            int(settings.get("SMTP_PORT", 25)),
            settings.get("SMTP_SENDER", "export@localhost"),
        )
    return LogNotifier()
