"""Conversion orchestrator: runs discovery, the page loop and output assembly as one job.

Lifecycle of a job::

    starting → launching_context → discovering_sitemap → pages_discovered
             → processing_page (once per page) → generating_output → completed

``failed`` ends a job from any state. ``cancelled`` is reported as soon as a
cancellation is requested; the page loop notices it at the next page boundary,
the pages converted so far are assembled into a partial result and the job
still ends ``completed``.
"""
from __future__ import annotations

import asyncio
import math
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from site_binder.config import BinderConfig, ConversionOptions
from site_binder.converter import PageConverter
from site_binder.crawler.models import ConvertedPage, PageNode, Sitemap
from site_binder.crawler.renderer import RenderContext, launch_render_context
from site_binder.crawler.sitemap import SitemapDiscoverer
from site_binder.errors import BinderError, PageProcessingError, ResourceError
from site_binder.jobs.models import ConversionJob, JobEvent, JobStatus
from site_binder.jobs.store import InMemoryJobStore, JobStore
from site_binder.logger import logger
from site_binder.report.assembler import AssemblyResult, assemble
from site_binder.utils import is_http_url, normalize_url

__all__ = ("ConversionOrchestrator", "ProgressListener")

ProgressListener = Callable[[JobEvent], None]
ContextFactory = Callable[[BinderConfig], Awaitable[RenderContext]]
ConverterFactory = Callable[[RenderContext, Optional[Path]], Any]

# progress checkpoints of the state machine
_PROGRESS_LAUNCHING = 5
_PROGRESS_DISCOVERING = 10
_PROGRESS_DISCOVERED = 20
_PROGRESS_PAGES_SPAN = 60
_PROGRESS_GENERATING = 90
_PROGRESS_DONE = 100


class ConversionOrchestrator:
    """Runs conversion jobs and keeps them reachable by id while they are active."""

    def __init__(
        self,
        config: Optional[BinderConfig] = None,
        *,
        store: Optional[JobStore] = None,
        context_factory: ContextFactory = launch_render_context,
        converter_factory: ConverterFactory = PageConverter,
        listeners: Iterable[ProgressListener] = (),
    ) -> None:
        self.config = config or BinderConfig()
        self.store: JobStore = store if store is not None else InMemoryJobStore()
        self._context_factory = context_factory
        self._converter_factory = converter_factory
        self._listeners: List[ProgressListener] = list(listeners)
        self._tasks: Dict[str, asyncio.Task] = {}
        self._finished: Dict[str, ConversionJob] = {}

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    def add_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def create_job(
        self,
        url: str,
        options: Union[ConversionOptions, Mapping[str, Any], None] = None,
    ) -> ConversionJob:
        """Allocate a job with its temp directory and register it. Does not start it."""
        if not is_http_url(url):
            raise ValueError(f"Unsupported URL (http and https only): {url}")
        if not isinstance(options, ConversionOptions):
            options = self.config.options(options)
        job = ConversionJob(url=url, options=options)
        job.temp_dir = self._create_temp_dir()
        self.store.set(job)
        self._transition(job, JobStatus.STARTING, progress=0)
        logger.info("Conversion %s registered for %s", job.id, url)
        return job

    def submit(
        self,
        url: str,
        options: Union[ConversionOptions, Mapping[str, Any], None] = None,
    ) -> str:
        """Start a conversion in the background and return its id immediately.

        Must be called from a running event loop.
        """
        job = self.create_job(url, options)
        loop = asyncio.get_running_loop()
        self._tasks[job.id] = loop.create_task(self.run(job), name=f"conversion-{job.id}")
        return job.id

    def get_status(self, job_id: str) -> Optional[JobEvent]:
        job = self.store.get(job_id) or self._finished.get(job_id)
        return job.snapshot() if job else None

    def cancel(self, job_id: str) -> bool:
        """Request cancellation. Returns ``False`` if no active job has this id.

        Resources are released by the job itself once its page loop stops.
        """
        job = self.store.get(job_id)
        if job is None or job.status.is_terminal:
            return False
        if not job.cancelled:
            job.token.cancel()
            logger.info("Cancellation requested for %s", job_id)
            self._transition(job, JobStatus.CANCELLED)
        return True

    async def wait(self, job_id: str) -> ConversionJob:
        """Wait for a submitted job and return its final record."""
        task = self._tasks.get(job_id)
        if task is None:
            raise KeyError(job_id)
        await asyncio.shield(task)
        return self._finished[job_id]

    async def discover_sitemap(
        self,
        url: str,
        options: Union[ConversionOptions, Mapping[str, Any], None] = None,
    ) -> Sitemap:
        """Stand-alone sitemap preview using a short-lived render context."""
        if not isinstance(options, ConversionOptions):
            options = self.config.options(options)
        context = await self._acquire_context()
        try:
            return await SitemapDiscoverer(context).discover(
                url, max_depth=options.max_depth, max_pages=options.max_pages
            )
        finally:
            await self._close_context(context)

    async def shutdown(self) -> None:
        """Interrupt outstanding jobs and drop every store entry and finished record."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
        self.store.clear()
        self._finished.clear()

    # ------------------------------------------------------------------ #
    # Job execution                                                      #
    # ------------------------------------------------------------------ #

    async def run(self, job: ConversionJob) -> Optional[AssemblyResult]:
        """Drive *job* through every state. Failures end as ``failed``; only task cancellation propagates."""
        try:
            self._transition(job, JobStatus.LAUNCHING_CONTEXT, progress=_PROGRESS_LAUNCHING)
            job.context = await self._acquire_context()

            self._transition(job, JobStatus.DISCOVERING_SITEMAP, progress=_PROGRESS_DISCOVERING)
            sitemap = await SitemapDiscoverer(job.context).discover(
                job.url, max_depth=job.options.max_depth, max_pages=job.options.max_pages
            )

            bounded = sitemap.pages[: min(len(sitemap), job.options.max_pages)]
            job.website_data.total_discovered = len(bounded)
            self._transition(job, JobStatus.PAGES_DISCOVERED, progress=_PROGRESS_DISCOVERED)

            await self.process_pages(job, bounded)

            total = len(bounded)
            processed = sum(1 for page in bounded if normalize_url(page.url) in job.processed_urls)
            partial = job.cancelled and processed < total
            self._transition(job, JobStatus.GENERATING_OUTPUT, progress=_PROGRESS_GENERATING)
            job.result = assemble(
                sitemap,
                job.pages,
                job.options,
                output_root=self.config.output_root,
                partial=partial,
                total=total,
            )
            await self._release(job)
            self._transition(job, JobStatus.COMPLETED, progress=_PROGRESS_DONE)
            logger.info("Conversion %s completed: %s", job.id, job.result.summary)
            return job.result
        except asyncio.CancelledError:
            logger.warning("Conversion %s interrupted", job.id)
            await self._fail(job, BinderError("Conversion interrupted before it finished"))
            raise
        except BinderError as exc:
            logger.error("Conversion %s failed: %s", job.id, exc)
            await self._fail(job, exc)
        except Exception as exc:
            logger.exception("Conversion %s failed unexpectedly", job.id)
            await self._fail(job, exc)
        finally:
            await self._release(job)
            self.store.delete(job.id)
            self._finished[job.id] = job
        return None

    async def process_pages(self, job: ConversionJob, pages: Sequence[PageNode]) -> None:
        """Convert *pages* in order, one at a time.

        Cancellation is observed only at the top of each iteration. Pages whose
        URL is already in ``job.processed_urls`` are skipped; a page that fails
        is logged and skipped.
        """
        total = len(pages)
        converter = self._converter_factory(job.context, job.temp_dir)
        loop_started = time.monotonic()

        for index, node in enumerate(pages):
            if job.cancelled:
                logger.info("Conversion %s cancelled before page %d/%d", job.id, index + 1, total)
                break
            key = normalize_url(node.url)
            if key in job.processed_urls:
                continue

            job.website_data.processing = index + 1
            job.website_data.current_page = node.url
            self._transition(
                job,
                JobStatus.PROCESSING_PAGE,
                progress=_PROGRESS_DISCOVERED + math.floor(index / total * _PROGRESS_PAGES_SPAN),
            )

            try:
                content = await converter.convert_page(node.url, job.options)
            except Exception as exc:
                logger.warning("%s", PageProcessingError(node.url, str(exc) or type(exc).__name__))
                continue

            job.pages.append(ConvertedPage(url=node.url, title=node.title, content=content))
            job.processed_urls.add(key)
            self._record_page_stats(job, total, time.monotonic() - loop_started)
            self._transition(job, JobStatus.PROCESSING_PAGE)

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #

    def _record_page_stats(self, job: ConversionJob, total: int, elapsed: float) -> None:
        done = len(job.pages)
        data = job.website_data
        data.completed = done
        if done and elapsed > 0:
            per_page = elapsed / done
            data.estimated_time_remaining = round(per_page * max(total - done, 0))
            data.processing_rate = round(done / elapsed, 2)
        else:
            data.estimated_time_remaining = 0
        logger.debug(
            "Conversion %s: %d/%d pages, eta %ss", job.id, done, total, data.estimated_time_remaining
        )

    def _transition(self, job: ConversionJob, status: JobStatus, *, progress: Optional[int] = None) -> None:
        if job.cancelled and not status.is_terminal:
            status = JobStatus.CANCELLED
        job.status = status
        if progress is not None:
            job.progress = max(job.progress, min(progress, _PROGRESS_DONE))
        logger.debug("Conversion %s -> %s (%d%%)", job.id, status.value, job.progress)
        self._emit(job.snapshot())

    def _emit(self, event: JobEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.warning("Progress listener failed for %s: %s", event.job_id, exc)

    async def _fail(self, job: ConversionJob, exc: BaseException) -> None:
        job.error = str(exc) or type(exc).__name__
        await self._release(job)
        self._transition(job, JobStatus.FAILED)

    def _create_temp_dir(self) -> Path:
        try:
            return Path(tempfile.mkdtemp(prefix=self.config.temp_prefix))
        except OSError as exc:
            raise ResourceError(f"Failed to create temp directory: {exc}", "temp_dir") from exc

    async def _acquire_context(self) -> RenderContext:
        try:
            return await self._context_factory(self.config)
        except ResourceError:
            raise
        except Exception as exc:
            raise ResourceError(f"Failed to launch render context: {exc}", "render_context") from exc

    @staticmethod
    async def _close_context(context: RenderContext) -> None:
        try:
            await context.close()
        except Exception as exc:
            logger.warning("Failed to close render context: %s", exc)

    async def _release(self, job: ConversionJob) -> None:
        """Close the render context and remove the temp directory, once."""
        if job.released:
            return
        job.released = True
        context, job.context = job.context, None
        if context is not None:
            await self._close_context(context)
        if job.temp_dir is not None:
            try:
                shutil.rmtree(job.temp_dir)
            except FileNotFoundError:
                logger.debug("Temp directory already gone: %s", job.temp_dir)
            except OSError as exc:
                logger.warning("Failed to clean up temp directory %s: %s", job.temp_dir, exc)
