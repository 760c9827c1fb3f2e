"""Common Library

Shared utilities and classes for the content capture pipeline.
"""

from capture_common import constants
from capture_common.config import ConfigurationManager, PipelineSettings, load_settings
from capture_common.logging_utils import log_summary, safe_log_event

__all__ = [
    "ConfigurationManager",
    "PipelineSettings",
    "constants",
    "load_settings",
    "log_summary",
    "safe_log_event",
]
