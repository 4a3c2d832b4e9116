"""Progress rendering for photosorter runs."""

from typing import Iterable, Optional

from rich.progress import Progress, TaskID

from .models import ProgressUpdated, RunEvent, ScanCompleted, StatusChanged


class ProgressContext:
    """Encapsulates progress tracking state and applies run events to it."""

    def __init__(self, progress: Optional[Progress] = None, task: Optional[TaskID] = None):
        self.progress = progress
        self.task = task

    @property
    def is_active(self) -> bool:
        """Check if progress tracking is active."""
        return self.progress is not None and self.task is not None

    def update(self, description: str, completed: Optional[int] = None,
               total: Optional[int] = None) -> None:
        """Update progress description (and optionally position) if tracking is active."""
        if self.is_active:
            self.progress.update(self.task, description=description,
                                 completed=completed, total=total)

    def apply(self, event: RunEvent) -> None:
        """Reflect one run event in the progress display."""
        if isinstance(event, ScanCompleted):
            self.update(event.message, completed=0, total=event.total)
        elif isinstance(event, ProgressUpdated):
            self.update(event.message, completed=event.completed, total=event.total)
        elif isinstance(event, StatusChanged):
            self.update(event.message)

    def follow(self, events: Iterable[RunEvent]) -> None:
        """Consume an event stream until it ends."""
        for event in events:
            self.apply(event)
