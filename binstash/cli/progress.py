# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Progress Display

Single responsibility: Render DownloadState updates as rich progress bars

One sink is shared by every concurrent download. Bars are keyed by URL
and the sink serializes its own updates, so callers never synchronize.
"""

import threading
from typing import Dict, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from binstash.models.release_models import DownloadState, DownloadStatus


class ProgressSink:
    """Thread-safe progress callback backed by rich.progress"""

    def __init__(self, console: Optional[Console] = None):
        self.progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            console=console or Console(stderr=True),
            transient=False,
        )
        self._tasks: Dict[str, TaskID] = {}
        self._lock = threading.Lock()

    def __call__(self, state: DownloadState) -> None:
        with self._lock:
            task_id = self._tasks.get(state.url)
            if state.status == DownloadStatus.STARTING or task_id is None:
                if task_id is not None:
                    self.progress.remove_task(task_id)
                task_id = self.progress.add_task(state.label or state.url, total=state.total_bytes)
                self._tasks[state.url] = task_id

            self.progress.update(task_id, completed=state.bytes_transferred, total=state.total_bytes)
            if state.status == DownloadStatus.COMPLETE:
                self.progress.stop_task(task_id)
                del self._tasks[state.url]

    def __enter__(self) -> "ProgressSink":
        self.progress.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.progress.stop()
