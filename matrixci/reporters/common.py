import re
from typing import List

ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def clean_logs(logs: str, max_chars: int = None) -> List[str]:
    """
    Clean logs so that they don't have ANSI color codes in them, keeping only
    the last `max_chars` characters when given.
    """
    logs = ansi_escape.sub("", logs or "").replace("\r", "\n")
    if max_chars is not None and len(logs) > max_chars:
        logs = logs[-max_chars:]
    return [line.rstrip() for line in logs.split("\n") if line.strip()]
