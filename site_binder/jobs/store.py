"""Job store: the only structure shared between concurrent jobs."""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Protocol, runtime_checkable

from site_binder.jobs.models import ConversionJob


@runtime_checkable
class JobStore(Protocol):
    def get(self, job_id: str) -> Optional[ConversionJob]: ...

    def set(self, job: ConversionJob) -> None: ...

    def delete(self, job_id: str) -> None: ...

    def clear(self) -> None: ...

    def __iter__(self) -> Iterator[str]: ...


class InMemoryJobStore:
    """Dict-backed store keyed by job id. Starts empty; :meth:`clear` drops everything."""

    def __init__(self) -> None:
        self._jobs: Dict[str, ConversionJob] = {}

    def get(self, job_id: str) -> Optional[ConversionJob]:
        return self._jobs.get(job_id)

    def set(self, job: ConversionJob) -> None:
        self._jobs[job.id] = job

    def delete(self, job_id: str) -> None:
        self._jobs.pop(job_id, None)

    def clear(self) -> None:
        self._jobs.clear()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._jobs))

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs
