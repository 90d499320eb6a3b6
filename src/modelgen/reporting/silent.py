from __future__ import annotations

from typing import List

from .base import Reporter, TaskStatus


class SilentReporter(Reporter):
    """Quiet reporter: prints nothing but keeps what went wrong.

    Used by ``-r silent`` and when modelgen is embedded in another tool.
    Warnings (name collisions, ignored texture slots), errors and the ids of
    failed tasks are collected so the caller can inspect them after a build.
    """

    def __init__(self) -> None:
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.failed_tasks: List[str] = []

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta
    ):
        pass

    def advance(self, task_id: str, step: int = 1, **meta):
        pass

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta,
    ):
        if status is TaskStatus.FAILED:
            self.failed_tasks.append(task_id)

    def status(self, message: str, **fields):
        pass

    def error(self, message: str, **fields):
        self.errors.append(message)

    def warning(self, message: str, **fields):
        self.warnings.append(message)

    def section(self, title: str) -> None:
        pass
