"""
Test that run events drive the rich progress bar.
"""

from rich.progress import Progress

from photosorter.models import ProgressUpdated, ScanCompleted, StatusChanged
from photosorter.progress import ProgressContext


class TestProgressContext:

    def test_inactive_context_ignores_events(self):
        context = ProgressContext()
        assert not context.is_active
        context.apply(StatusChanged("Scanning…"))

    def test_events_update_task(self):
        progress = Progress(disable=True)
        task = progress.add_task("Starting", total=None)
        context = ProgressContext(progress, task)

        context.follow([
            StatusChanged("Scanning…"),
            ScanCompleted(total=30, message="Found 30 files. Sorting…"),
            ProgressUpdated(completed=25, total=30, processed=24, skipped=1,
                            message="25/30 files processed…"),
        ])

        state = progress.tasks[0]
        assert state.description == "25/30 files processed…"
        assert state.completed == 25
        assert state.total == 30

    def test_status_keeps_position(self):
        progress = Progress(disable=True)
        task = progress.add_task("Starting", total=10)
        context = ProgressContext(progress, task)

        context.apply(ProgressUpdated(completed=10, total=10, processed=10, skipped=0,
                                      message="10/10 files processed…"))
        context.apply(StatusChanged("Done. Moved/Copied 10 file(s); Skipped 0."))

        state = progress.tasks[0]
        assert state.description.startswith("Done.")
        assert state.completed == 10
