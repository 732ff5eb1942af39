from __future__ import annotations

from typing import List, Optional, Protocol

from .logging import log_event
from .utils import make_record_id


class Notifier(Protocol):
    def notify(self, title: str, message: str, buttons: Optional[List[str]] = None) -> str: ...

    def clear(self, notification_id: str) -> None: ...


class ConsoleNotifier:
    """Prints notifications; button clicks come back in through the CLI."""

    def __init__(self, *, echo: bool = True) -> None:
        self.echo = echo

    def notify(self, title: str, message: str, buttons: Optional[List[str]] = None) -> str:
        notification_id = make_record_id()
        log_event("notification_shown", id=notification_id, title=title, buttons=buttons or [])
        if self.echo:
            print(f"[{title}] {message}")
            for idx, label in enumerate(buttons or []):
                print(f"  ({idx}) {label}: python main.py track {notification_id} --button {idx}")
        return notification_id

    def clear(self, notification_id: str) -> None:
        log_event("notification_cleared", id=notification_id)
