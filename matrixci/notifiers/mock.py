"""
A mock notifier.

This is used to test pipelines.
"""
from typing import List, Tuple

from matrixci.definitions import Notifier, Status
from matrixci.logging import logger


class Mock(Notifier):
    """
    Remembers every call, and separately every notification that would
    actually have been sent.
    """

    def __init__(self, *, broken: bool = False):
        self.broken = broken
        self.calls: List[Tuple[Status, bool]] = []
        self.sent: List[Tuple[Status, str]] = []

    def notify(self, event: Status, report: str, suppressed: bool) -> None:
        self.calls.append((event, suppressed))
        if self.broken:
            raise ConnectionError("Mock notifier is broken")
        if suppressed:
            return
        self.sent.append((event, report))
        logger.debug("Published report", status=event.value)
