from rich.console import Console as RichConsole

from matrixci.definitions import Notifier, Status
from matrixci.logging import logger


class Console(Notifier):
    """
    Print the report to the terminal.
    """

    def __init__(self, console: RichConsole = None):
        self.console = console if console is not None else RichConsole()

    def notify(self, event: Status, report: str, suppressed: bool) -> None:
        if suppressed:
            logger.debug("Notification suppressed", event=event.value)
            return
        self.console.print(report, markup=False, highlight=False)
