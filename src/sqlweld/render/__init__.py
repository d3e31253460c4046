"""Rendering: Jinja2 engine and the parallel render scheduler."""

from .engine import ENVIRONMENT_OPTIONS, ResolvingEnvironment, TemplateEngine
from .scheduler import (
    RenderResult,
    RenderScheduler,
    RenderTask,
    ScheduleOutcome,
    TaskStatus,
    describe_error,
)

__all__ = [
    "ENVIRONMENT_OPTIONS",
    "RenderResult",
    "RenderScheduler",
    "RenderTask",
    "ResolvingEnvironment",
    "ScheduleOutcome",
    "TaskStatus",
    "TemplateEngine",
    "describe_error",
]
