"""
Crate Placer - Error Handler
Exception types and diagnostic collection for batch runs
"""

import os
import json
import time
import logging
import traceback
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class CratePlacerError(Exception):
    """Unknown error occurred"""
    error_code = "UNKNOWN_9001"


class RegistryError(CratePlacerError):
    """Invalid anchor registry data"""
    error_code = "CONFIG_1101"


class SinkWriteError(CratePlacerError):
    """Output record could not be written"""
    error_code = "FILE_2007"


class SceneParseError(CratePlacerError):
    """Invalid scene document"""
    error_code = "PARSE_3001"


class MalformedRecordError(CratePlacerError):
    """Malformed scene record"""
    error_code = "PARSE_3101"


class CollectorInputError(CratePlacerError):
    """Unparseable collector answer"""
    error_code = "INPUT_8001"


def _known_codes() -> Dict[str, str]:
    codes = {}
    pending = [CratePlacerError]
    while pending:
        cls = pending.pop()
        codes[cls.error_code] = cls.__doc__
        pending.extend(cls.__subclasses__())
    return dict(sorted(codes.items()))


class ErrorSeverity(Enum):
    """How a diagnostic affects the run; values are the logging levels used"""
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    FATAL = logging.CRITICAL


class ErrorCategory(Enum):
    CONFIGURATION = "Configuration"
    FILE_IO = "File I/O"
    PARSING = "Parsing"
    UNKNOWN = "Unknown"


@dataclass
class ErrorInfo:
    """One recorded diagnostic"""
    severity: ErrorSeverity
    category: ErrorCategory
    error_code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    stack_trace: str = ""
    timestamp: float = field(default_factory=time.time)

    def __str__(self) -> str:
        return f"{self.severity.name} ({self.category.value}) {self.error_code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'time': time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(self.timestamp)),
            'severity': self.severity.name,
            'category': self.category.value,
            'error_code': self.error_code,
            'description': ErrorHandler.ERROR_CODES.get(self.error_code, ""),
            'message': self.message,
            'context': self.context,
            'stack_trace': self.stack_trace,
        }


class ErrorHandler:
    """Collects diagnostics raised during a batch run.

    Nothing is retried or recovered here: a handled error is recorded and
    logged, and the caller decides whether to skip the record or abort.
    """

    ERROR_CODES = _known_codes()

    def __init__(self):
        self.error_log: List[ErrorInfo] = []

    def handle_error(self, error: Exception, severity: ErrorSeverity = ErrorSeverity.ERROR,
                     category: ErrorCategory = ErrorCategory.UNKNOWN,
                     context: Optional[Dict[str, Any]] = None) -> ErrorInfo:
        """
        Record and log an error

        The error code comes from the exception class; exceptions from
        outside the package are filed under ``UNKNOWN_9001``.
        """
        stack_trace = ""
        if error.__traceback__ is not None:
            stack_trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))

        info = ErrorInfo(
            severity=severity,
            category=category,
            error_code=getattr(error, 'error_code', CratePlacerError.error_code),
            message=str(error),
            context=context or {},
            stack_trace=stack_trace,
        )
        self.error_log.append(info)
        logger.log(severity.value, str(info))
        return info

    def errors(self, severity: Optional[ErrorSeverity] = None,
               category: Optional[ErrorCategory] = None) -> List[ErrorInfo]:
        """Recorded diagnostics, optionally filtered"""
        return [
            info for info in self.error_log
            if (severity is None or info.severity == severity)
            and (category is None or info.category == category)
        ]

    @property
    def warning_count(self) -> int:
        return len(self.errors(ErrorSeverity.WARNING))

    @property
    def error_count(self) -> int:
        return len(self.error_log) - self.warning_count

    def get_error_summary(self) -> Dict[str, Any]:
        return {
            'total_errors': self.error_count,
            'total_warnings': self.warning_count,
            'by_code': dict(Counter(info.error_code for info in self.error_log)),
            'by_category': dict(Counter(info.category.value for info in self.error_log)),
            'recent_errors': [info.to_dict() for info in self.error_log[-10:]],
        }

    def create_error_report(self, output_path: str) -> bool:
        """Write all recorded diagnostics to a JSON report"""
        report = {
            'generated': time.strftime('%Y-%m-%d %H:%M:%S'),
            'summary': self.get_error_summary(),
            'errors': [info.to_dict() for info in self.error_log],
        }

        try:
            directory = os.path.dirname(output_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=4)
            return True
        except OSError as e:
            logger.error(f"Failed to write error report {output_path}: {e}")
            return False
