"""
Crate Placer - Utilities Module
Logging, error handling and progress tracking shared by the pipeline
"""

from .progress_tracker import ProgressTracker, ProgressStage, ProgressUpdate, ProgressCallback, LoggingProgressCallback
from .logger import Logger, LogLevel, LogFormatter, get_logger, setup_logging
from .error_handler import (
    ErrorHandler, ErrorSeverity, ErrorCategory, ErrorInfo,
    CratePlacerError, SceneParseError, MalformedRecordError, RegistryError,
    SinkWriteError, CollectorInputError,
)

__all__ = [
    # Progress Tracking
    'ProgressTracker',
    'ProgressStage',
    'ProgressUpdate',
    'ProgressCallback',
    'LoggingProgressCallback',

    # Logging
    'Logger',
    'LogLevel',
    'LogFormatter',
    'get_logger',
    'setup_logging',

    # Error Handling
    'ErrorHandler',
    'ErrorSeverity',
    'ErrorCategory',
    'ErrorInfo',
    'CratePlacerError',
    'SceneParseError',
    'MalformedRecordError',
    'RegistryError',
    'SinkWriteError',
    'CollectorInputError',
]
