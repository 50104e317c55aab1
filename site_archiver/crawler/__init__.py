"""
Crawler module for the site archiver.

Contains the step pipeline, the task source, the download executor, and the
archiver that ties them together.
"""

from .crawler import SiteArchiver, ArchiveResult
from .pipeline import StepPipeline
from .task_source import TaskSource
from .downloader import DownloadExecutor, DownloadStats
from .extractor import HtmlDocument, Element

__all__ = [
    "SiteArchiver",
    "ArchiveResult",
    "StepPipeline",
    "TaskSource",
    "DownloadExecutor",
    "DownloadStats",
    "HtmlDocument",
    "Element",
]
