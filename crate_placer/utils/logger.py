"""
Crate Placer - Logger
Handler setup for the ``crate_placer`` logger hierarchy

Modules log through ``logging.getLogger(__name__)``; the CLI calls
``setup_logging`` once to attach a console, a rotating log file and an
optional JSON-lines file to the package logger, plus a counter that every
package record passes through.
"""

import sys
import json
import time
import logging
import logging.handlers
from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from colorama import Fore, Back, Style, just_fix_windows_console

PACKAGE_LOGGER = "crate_placer"


class LogLevel(Enum):
    """Logging levels accepted on the command line and in settings"""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def from_string(cls, level_str: str) -> 'LogLevel':
        """Unknown names fall back to INFO"""
        return cls.__members__.get(level_str.upper(), cls.INFO)


class LogFormatter(logging.Formatter):
    """Plain text formatter; with colours on, only the level tag is coloured"""

    LEVEL_COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Back.WHITE + Style.BRIGHT,
    }

    SIMPLE_FORMAT = '%(asctime)s %(leveltag)s %(message)s'
    DETAILED_FORMAT = '%(asctime)s %(leveltag)s [%(name)s:%(lineno)d] %(message)s'

    def __init__(self, use_colors: bool = False, detailed: bool = False):
        super().__init__(self.DETAILED_FORMAT if detailed else self.SIMPLE_FORMAT)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        tag = f"[{record.levelname}]"
        color = self.LEVEL_COLORS.get(record.levelname) if self.use_colors else None
        record.leveltag = f"{color}{tag}{Style.RESET_ALL}" if color else tag
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'time': time.strftime('%Y-%m-%dT%H:%M:%S', time.localtime(record.created)),
            'level': record.levelname,
            'logger': record.name,
            'line': record.lineno,
            'message': record.getMessage(),
        }
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class LevelCounter(logging.Handler):
    """Counts records per level name; emits nothing"""

    def __init__(self):
        super().__init__(logging.NOTSET)
        self.counts: Counter = Counter()

    def emit(self, record: logging.LogRecord) -> None:
        self.counts[record.levelname] += 1

    @property
    def warnings(self) -> int:
        return self.counts['WARNING']

    @property
    def errors(self) -> int:
        return self.counts['ERROR'] + self.counts['CRITICAL']


class Logger:
    """Owns the handlers attached to the package logger for one CLI run"""

    def __init__(self, name: str = PACKAGE_LOGGER,
                 log_dir: Optional[str] = None,
                 level: LogLevel = LogLevel.INFO,
                 max_file_size_mb: int = 10,
                 backup_count: int = 5,
                 enable_console: bool = True,
                 enable_file: bool = True,
                 enable_json: bool = False,
                 detailed_console: bool = False):
        self.name = name
        self.level = level
        self.log_dir = Path(log_dir) if log_dir else Path.home() / ".crate_placer" / "logs"
        self.started = time.time()

        self.logger = logging.getLogger(name)
        self.logger.setLevel(level.value)
        self.logger.propagate = False
        self.logger.handlers.clear()

        self.counter = LevelCounter()
        self.handlers: Dict[str, logging.Handler] = {'counter': self.counter}

        if enable_console:
            just_fix_windows_console()
            console = logging.StreamHandler(sys.stderr)
            console.setFormatter(LogFormatter(use_colors=sys.stderr.isatty(), detailed=detailed_console))
            self.handlers['console'] = console

        if enable_file or enable_json:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            rotating = dict(maxBytes=max_file_size_mb * 1024 * 1024, backupCount=backup_count, encoding='utf-8')
            if enable_file:
                text_file = logging.handlers.RotatingFileHandler(self.log_dir / f"{name}.log", **rotating)
                text_file.setFormatter(LogFormatter(detailed=True))
                self.handlers['file'] = text_file
            if enable_json:
                json_file = logging.handlers.RotatingFileHandler(self.log_dir / f"{name}.jsonl", **rotating)
                json_file.setFormatter(JSONFormatter())
                self.handlers['json'] = json_file

        for handler in self.handlers.values():
            self.logger.addHandler(handler)

        self._section_start = (0, 0)

    def start_section(self, section_name: str):
        separator = "=" * 60
        self.logger.info(f"{separator}\n{section_name}\n{separator}")
        self._section_start = (self.counter.warnings, self.counter.errors)

    def end_section(self, section_name: str, success: bool = True):
        """Close a section, reporting the warnings and errors logged inside it"""
        warnings = self.counter.warnings - self._section_start[0]
        errors = self.counter.errors - self._section_start[1]
        summary = f"{warnings} warnings, {errors} errors"
        if success:
            self.logger.info(f"✓ {section_name} COMPLETED ({summary})")
        else:
            self.logger.error(f"✗ {section_name} FAILED ({summary})")

    def get_stats(self) -> Dict[str, Any]:
        return {
            'level': self.level.name,
            'counts': dict(self.counter.counts),
            'warning_count': self.counter.warnings,
            'error_count': self.counter.errors,
            'runtime_seconds': time.time() - self.started,
            'handlers': [key for key in self.handlers if key != 'counter'],
        }

    def close(self):
        """Detach and close every handler; closing flushes the log files"""
        for handler in self.handlers.values():
            self.logger.removeHandler(handler)
            handler.close()
        self.handlers = {'counter': self.counter}


_global_logger: Optional[Logger] = None


def get_logger() -> Logger:
    """The logger configured by ``setup_logging``, or a console-only default"""
    global _global_logger
    if _global_logger is None:
        _global_logger = Logger(enable_file=False)
    return _global_logger


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None,
                  enable_file: bool = True, **kwargs) -> Logger:
    """Configure the package logger, replacing any earlier configuration"""
    global _global_logger
    if _global_logger is not None:
        _global_logger.close()
    _global_logger = Logger(
        PACKAGE_LOGGER,
        log_dir=log_dir,
        level=LogLevel.from_string(level),
        enable_file=enable_file,
        **kwargs
    )
    return _global_logger
