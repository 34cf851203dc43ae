# File: site_binder/engine.py
"""site_binder.engine: Orchestration layer для запуска конвертации сайта и получения результата."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from site_binder.config import BinderConfig, ConversionOptions
from site_binder.crawler.models import Sitemap
from site_binder.errors import BinderError
from site_binder.jobs import ConversionOrchestrator, JobStatus, ProgressListener
from site_binder.report.assembler import AssemblyResult

__all__ = ["start_conversion", "start_discovery"]

OptionsT = Union[ConversionOptions, Mapping[str, Any], None]


async def start_conversion(
    cfg: BinderConfig,
    url: str,
    options: OptionsT = None,
    listener: Optional[ProgressListener] = None,
) -> AssemblyResult:
    """
    Запускает задачу конвертации и ждёт её завершения.

    Raises :class:`BinderError` with the job's error message when the job fails.
    """
    orchestrator = ConversionOrchestrator(cfg, listeners=[listener] if listener else ())
    try:
        job_id = orchestrator.submit(url, options)
        job = await orchestrator.wait(job_id)
    finally:
        await orchestrator.shutdown()
    if job.status is not JobStatus.COMPLETED or job.result is None:
        raise BinderError(job.error or f"Conversion {job.id} did not complete")
    return job.result


async def start_discovery(cfg: BinderConfig, url: str, options: OptionsT = None) -> Sitemap:
    """Строит карту сайта без конвертации страниц."""
    return await ConversionOrchestrator(cfg).discover_sitemap(url, options)

