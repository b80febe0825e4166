from __future__ import annotations

from datetime import datetime
from typing import Any, Callable
from uuid import uuid4

from .errors import WavprintError
from .events import EventBus
from .models import JobStatus, RenderJob
from .pipeline import Pipeline


class RenderQueue:
    """Ordered queue of render jobs. Processes sequentially."""

    def __init__(self, default_config: dict[str, Any] | None = None):
        self._jobs: list[RenderJob] = []
        self._default_config: dict[str, Any] = default_config or {}

    def add(
        self,
        source_path: str,
        output_path: str | None = None,
        config: dict[str, Any] | None = None,
        priority: int = 0,
        label: str | None = None,
    ) -> RenderJob:
        """
        Enqueue a file. Config is merged over the queue defaults
        (default < per-job overrides).
        """
        merged = {**self._default_config, **(config or {})}
        job = RenderJob(
            job_id=label or str(uuid4()),
            source_path=source_path,
            output_path=output_path,
            config=merged,
            priority=priority,
        )
        self._jobs.append(job)
        self._jobs.sort(key=lambda j: j.priority)
        return job

    def remove(self, job_id: str) -> bool:
        """Remove a pending job. Returns True if found and removed."""
        for i, job in enumerate(self._jobs):
            if job.job_id == job_id and job.status == JobStatus.PENDING:
                self._jobs.pop(i)
                return True
        return False

    def cancel(self, job_id: str) -> None:
        """Mark a pending job as cancelled."""
        for job in self._jobs:
            if job.job_id == job_id and job.status == JobStatus.PENDING:
                job.status = JobStatus.CANCELLED
                break

    def pending(self) -> list[RenderJob]:
        return [j for j in self._jobs if j.status == JobStatus.PENDING]

    def completed(self) -> list[RenderJob]:
        return [j for j in self._jobs if j.status == JobStatus.COMPLETED]

    def failed(self) -> list[RenderJob]:
        return [j for j in self._jobs if j.status == JobStatus.FAILED]

    def all_jobs(self) -> list[RenderJob]:
        return list(self._jobs)

    def run_next(
        self,
        pipeline_factory: Callable[[dict[str, Any]], Pipeline],
        event_bus: EventBus | None = None,
    ) -> RenderJob | None:
        """
        Run the next pending job. Returns the completed/failed job,
        or None if the queue is empty.
        """
        job = next(
            (j for j in self._jobs if j.status == JobStatus.PENDING), None
        )
        if not job:
            return None

        job.status = JobStatus.RUNNING
        if event_bus:
            event_bus.emit("job.start", job_id=job.job_id,
                           source=job.source_path)

        try:
            pipeline = pipeline_factory(job.config)
            job.result = pipeline.render(job.source_path, job.output_path)
            job.status = JobStatus.COMPLETED
        except WavprintError as e:
            job.status = JobStatus.FAILED
            job.error = str(e)
            job.error_stage = e.stage
        except Exception as e:
            job.status = JobStatus.FAILED
            job.error = f"{type(e).__name__}: {e}"
            job.error_stage = WavprintError.stage

        job.completed_at = datetime.now()

        if event_bus:
            event_bus.emit("job.complete", job_id=job.job_id,
                           status=job.status.value)

        return job

    def run_all(
        self,
        pipeline_factory: Callable[[dict[str, Any]], Pipeline],
        event_bus: EventBus | None = None,
        on_complete: Callable[[RenderJob], None] | None = None,
    ) -> list[RenderJob]:
        """Drain the queue. Callback fires after each job."""
        finished = []
        while self.pending():
            job = self.run_next(pipeline_factory, event_bus=event_bus)
            if job:
                finished.append(job)
                if on_complete:
                    on_complete(job)
        return finished
