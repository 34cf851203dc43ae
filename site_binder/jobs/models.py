"""State of a conversion job and the events pushed for it."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from site_binder.config import ConversionOptions
from site_binder.crawler.models import ConvertedPage
from site_binder.crawler.renderer import RenderContext
from site_binder.report.assembler import AssemblyResult


class JobStatus(str, Enum):
    STARTING = "starting"
    LAUNCHING_CONTEXT = "launching_context"
    DISCOVERING_SITEMAP = "discovering_sitemap"
    PAGES_DISCOVERED = "pages_discovered"
    PROCESSING_PAGE = "processing_page"
    GENERATING_OUTPUT = "generating_output"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class CancellationToken:
    """Advisory flag polled by the page loop."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(slots=True)
class WebsiteData:
    total_discovered: int = 0
    processing: int = 0
    completed: int = 0
    current_page: Optional[str] = None
    estimated_time_remaining: Optional[int] = None
    processing_rate: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalDiscovered": self.total_discovered,
            "processing": self.processing,
            "completed": self.completed,
            "currentPage": self.current_page,
            "estimatedTimeRemaining": self.estimated_time_remaining,
            "processingRate": self.processing_rate,
        }


@dataclass(slots=True)
class JobEvent:
    """Snapshot pushed to listeners after every transition."""

    job_id: str
    status: JobStatus
    progress: int
    website_data: WebsiteData
    error: Optional[str] = None
    result: Optional[AssemblyResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.job_id,
            "status": self.status.value,
            "progress": self.progress,
            "websiteData": self.website_data.to_dict(),
            "error": self.error,
            "result": self.result.to_dict() if self.result else None,
        }


def new_job_id() -> str:
    return f"site_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass(slots=True, eq=False)
class ConversionJob:
    """Mutable record of one conversion.

    The temp directory and render context belong to this job alone and are
    released once, whatever way the job ends.
    """

    url: str
    options: ConversionOptions
    id: str = field(default_factory=new_job_id)
    status: JobStatus = JobStatus.STARTING
    progress: int = 0
    processed_urls: Set[str] = field(default_factory=set)
    pages: List[ConvertedPage] = field(default_factory=list)
    temp_dir: Optional[Path] = None
    context: Optional[RenderContext] = None
    token: CancellationToken = field(default_factory=CancellationToken)
    website_data: WebsiteData = field(default_factory=WebsiteData)
    result: Optional[AssemblyResult] = None
    error: Optional[str] = None
    released: bool = False

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def snapshot(self) -> JobEvent:
        return JobEvent(
            job_id=self.id,
            status=self.status,
            progress=self.progress,
            website_data=replace(self.website_data),
            error=self.error,
            result=self.result,
        )
