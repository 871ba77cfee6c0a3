"""
Post the pipeline status to an HTTP endpoint.
"""
import os

import requests

from matrixci.definitions import Notifier, Repo, Status
from matrixci.logging import logger


class NotifyFailed(Exception):
    "The webhook endpoint did not accept the notification"


class Webhook(Notifier):
    """
    Sends a JSON body of the form::

        {"event": "success", "branch": "...", "sha": "...", "report": "..."}

    Configure it with `MATRIXCI_WEBHOOK_URL`.
    """

    @classmethod
    def from_env(cls, *, repo: Repo) -> "Webhook":
        return cls(
            url=os.environ["MATRIXCI_WEBHOOK_URL"], branch=repo.branch, sha=repo.sha
        )

    def __init__(self, *, url: str, branch: str = None, sha: str = None):
        self.url = url
        self.branch = branch
        self.sha = sha
        self.timeout = 10

    def logging(self):
        return logger.bind(url=self.url, branch=self.branch)

    def notify(self, event: Status, report: str, suppressed: bool) -> None:
        if suppressed:
            self.logging().debug("Notification suppressed", event=event.value)
            return
        r = requests.post(
            self.url,
            json={
                "event": event.value,
                "branch": self.branch,
                "sha": self.sha,
                "report": report,
            },
            timeout=self.timeout,
        )
        self.logging().debug("Published report", status_code=r.status_code)
        if not 200 <= r.status_code < 300:
            raise NotifyFailed(f"{self.url} answered {r.status_code}")
