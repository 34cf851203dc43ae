"""site_binder.jobs: conversion jobs, their store and the orchestrator that runs them."""

from site_binder.jobs.models import CancellationToken, ConversionJob, JobEvent, JobStatus, WebsiteData
from site_binder.jobs.orchestrator import ConversionOrchestrator, ProgressListener
from site_binder.jobs.store import InMemoryJobStore, JobStore

__all__ = [
    "CancellationToken",
    "ConversionJob",
    "ConversionOrchestrator",
    "InMemoryJobStore",
    "JobEvent",
    "JobStatus",
    "JobStore",
    "ProgressListener",
    "WebsiteData",
]
