"""Orchestrator - the download loop and its run result."""

from .downloader import RunResult, RunState, YieldCurveDownloader, run_download

__all__ = [
    "RunResult",
    "RunState",
    "YieldCurveDownloader",
    "run_download",
]
