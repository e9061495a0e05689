"""
API Dependencies
Access to the stores and the scheduler built at startup.
"""

from fastapi import Request

from studio.services.job_store import JobStore
from studio.services.settings_store import SettingsStore
from studio.workers.scheduler import Scheduler


def get_scheduler(request: Request) -> Scheduler:
    """Get the process-wide scheduler."""
    return request.app.state.scheduler


def get_job_store(request: Request) -> JobStore:
    return request.app.state.job_store


def get_settings_store(request: Request) -> SettingsStore:
    return request.app.state.settings_store
