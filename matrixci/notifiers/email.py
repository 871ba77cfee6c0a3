"""
An email notifier.

This is used to report pipeline status via email.
"""
import os
import smtplib
from html import escape as html_escape

from email.headerregistry import Address
from email.message import EmailMessage
from pathlib import Path
from urllib.parse import urlparse


from matrixci.definitions import Notifier, Repo, Status
from matrixci.logging import logger


class Email(Notifier):  # pylint: disable=too-many-instance-attributes
    """
    You can send pipeline status via email using this notifier. In order to
    use it you can specify the following environment variables:

    .. code-block:: console

        MATRIXCI_EMAIL_ADDR=email-account@gmail.com
        MATRIXCI_EMAIL_PASSWORD=some-app-password
        MATRIXCI_EMAIL_TO=myself@gmail.com,mailing-list@gmail.com
        MATRIXCI_EMAIL_FROM=noreply@gmail.com

    If you're using something other than gmail, you can specify
    `MATRIXCI_EMAIL_HOST` and `MATRIXCI_EMAIL_PORT` as well.

    :param host: What smtp host to use.
    :param port: Smtp port to use.
    :param addr: Smtp address to use for login.
    :param password: Smtp password to use for login.
    :param email_to: Which address the email should go to.
    :param email_from: Which address should be the sender of this email.
    :param subject: The subject line of the email.
    """

    @classmethod
    def from_env(cls, *, repo: Repo) -> "Email":
        """
        Creates a notifier instance from the environment.
        """
        parts = Path(urlparse(repo.remote).path).parts
        name = "/".join(parts[1:3]).replace(".git", "") if len(parts) > 2 else "repo"
        return cls(
            host=os.environ.get("MATRIXCI_EMAIL_HOST", "smtp.gmail.com"),
            port=int(os.environ.get("MATRIXCI_EMAIL_PORT", 465)),
            addr=os.environ["MATRIXCI_EMAIL_ADDR"],
            password=os.environ["MATRIXCI_EMAIL_PASSWORD"],
            email_to=os.environ["MATRIXCI_EMAIL_TO"],
            email_from=os.environ.get(
                "MATRIXCI_EMAIL_FROM", os.environ["MATRIXCI_EMAIL_ADDR"]
            ),
            subject=f"matrixci [{name}] [{repo.branch} {repo.sha[:8]}]",
        )

    def __init__(
        self,
        *,
        host: str,
        port: int,
        addr: str,
        password: str,
        email_to: str,
        email_from: str,
        subject: str,
    ):  # pylint: disable=too-many-arguments
        self.host = host
        self.port = port
        self.addr = addr
        self.password = password
        self.email_to = email_to
        self.email_from = email_from
        self.subject = subject
        # ---
        self.__smtp__ = None

    @property
    def smtp(self):
        if self.__smtp__ is None:
            smtp = smtplib.SMTP_SSL(self.host, self.port)
            smtp.ehlo()
            smtp.login(self.addr, self.password)
            self.__smtp__ = smtp
        return self.__smtp__

    def logging(self):
        """
        Return's a logging instance with information about the smtp server
        bound to it.
        """
        return logger.bind(addr=self.addr, host=self.host, port=self.port)

    def teardown(self) -> None:
        if self.__smtp__ is not None:
            self.__smtp__.quit()
            self.__smtp__ = None

    def notify(self, event: Status, report: str, suppressed: bool) -> None:
        """
        Will send the report via email.
        """
        if suppressed:
            self.logging().debug("Notification suppressed", event=event.value)
            return
        msg = EmailMessage()
        msg["Subject"] = f"{self.subject} {event.value}"
        msg["From"] = Address(display_name="matrixci", addr_spec=self.email_from)
        msg["To"] = self.email_to
        msg.set_content(report)
        msg.add_alternative(
            f"<html><body><pre>{html_escape(report)}</pre></body></html>",
            subtype="html",
        )
        self.smtp.send_message(msg)
        self.logging().info(
            "Report published",
            subject=self.subject,
            email_from=self.email_from,
            email_to=self.email_to,
        )
