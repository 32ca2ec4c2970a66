from colorama import Fore, Style
from enum import Enum
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import json
import re

# Try to import config, fallback to defaults if not available
try:
    from dorgu.config.config import Config
    config = Config()
except Exception:
    config = None


class ComponentColor(Enum):
    # Configuration Components (Green Family)
    CONFIG_LOADER = Fore.GREEN
    RESOLVER = Fore.LIGHTGREEN_EX

    # Generation Components (Blue Family)
    GENERATOR = Fore.LIGHTBLUE_EX
    PERSONA_GENERATOR = Fore.BLUE
    VALIDATOR = Fore.CYAN

    # Enrichment/Output Components (Magenta Family)
    PERSONA_ENRICHER = Fore.MAGENTA
    LLM_PROVIDER = Fore.LIGHTMAGENTA_EX
    OUTPUT_WRITER = Fore.LIGHTMAGENTA_EX
    CLI = Fore.LIGHTCYAN_EX
    # Base/Default
    BASE = Fore.WHITE

class LogLevelColor(Enum):
    """Log level colors following traffic light semantics."""
    DEBUG = Fore.LIGHTBLACK_EX
    INFO = Fore.BLUE
    WARNING = Fore.YELLOW
    ERROR = Fore.RED
    CRITICAL = Fore.LIGHTRED_EX

class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_LOGGERS: List["DorguLogger"] = []


def _level_number(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


class DorguLogger:
    """Component logger with colored console output and optional file output.

    Console lines go to stderr so that dry-run manifests printed on stdout
    stay machine readable.
    """

    def __init__(self, component: str = "BASE", log_to_console: Optional[bool] = None, log_to_file: Optional[bool] = None, log_level: Optional[str] = None, log_file: Optional[str] = None) -> None:
        self.component = component
        if config:
            self.log_to_console = log_to_console if log_to_console is not None else getattr(config, 'LOG_TO_CONSOLE', True)
            self.log_to_file = log_to_file if log_to_file is not None else getattr(config, 'LOG_TO_FILE', False)
            self.log_level = log_level if log_level is not None else getattr(config, 'LOG_LEVEL', 'WARNING')
            self.log_file = log_file if log_file is not None else getattr(config, 'LOG_FILE', 'dorgu.log')
        else:
            self.log_to_console = log_to_console if log_to_console is not None else True
            self.log_to_file = log_to_file if log_to_file is not None else False
            self.log_level = log_level if log_level is not None else 'WARNING'
            self.log_file = log_file if log_file is not None else 'dorgu.log'
        self.logger = logging.getLogger(f"dorgu.{component}")
        self.logger.setLevel(_level_number(self.log_level))
        self.logger.propagate = False
        # Remove all handlers to avoid duplicate logs
        self.logger.handlers = []
        _LOGGERS.append(self)
        if self.log_to_file:
            file_handler = logging.FileHandler(self.log_file)
            file_handler.setLevel(_level_number(self.log_level))
            file_handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(file_handler)

    def set_level(self, level: str) -> None:
        """Change the minimum level at runtime (e.g. from a --verbose flag)."""
        self.log_level = level.upper()
        self.logger.setLevel(_level_number(self.log_level))
        for handler in self.logger.handlers:
            handler.setLevel(_level_number(self.log_level))

    def is_enabled_for(self, level: str) -> bool:
        return _level_number(level) >= _level_number(self.log_level)

    def _get_color(self, component: str) -> str:
        """Get color for component."""
        key = re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", component).upper()
        try:
            return ComponentColor[key].value
        except KeyError:
            return ComponentColor.BASE.value

    def _get_level_color(self, level: str) -> str:
        """Get color for log level."""
        try:
            return LogLevelColor[level].value
        except KeyError:
            return Fore.WHITE

    def _log_to_console(self, message: str, level: str = "INFO") -> None:
        """Log to console with color, if enabled."""
        if self.log_to_console and self.is_enabled_for(level):
            component_color = self._get_color(self.component)
            level_color = self._get_level_color(level)
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "+00:00"
            formatted_message = f"{level_color}[{level}]{Style.RESET_ALL} {component_color}{self.component}{Style.RESET_ALL}: [{timestamp}] {message}"
            print(formatted_message, file=sys.stderr)

    def _log_to_file(self, message: str, level: str = "INFO") -> None:
        """Log to file, if enabled."""
        if self.log_to_file:
            log_method = getattr(self.logger, level.lower(), self.logger.info)
            log_method(message)

    def log(self, message: str, level: str = "INFO") -> None:
        """Log message to all configured outputs."""
        self._log_to_console(message, level)
        self._log_to_file(message, level)

    def debug(self, message: str, **extra: Any) -> None:
        self.log_structured(level="DEBUG", message=message, extra=extra or None)

    def info(self, message: str, **extra: Any) -> None:
        self.log_structured(level="INFO", message=message, extra=extra or None)

    def warning(self, message: str, **extra: Any) -> None:
        self.log_structured(level="WARNING", message=message, extra=extra or None)

    def error(self, message: str, **extra: Any) -> None:
        self.log_structured(level="ERROR", message=message, extra=extra or None)

    def log_structured(
        self,
        level: str = "INFO",
        message: str = "",
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log a structured message with context fields.
        If LOG_STRUCTURED_JSON is True, outputs JSON; otherwise, outputs a
        message followed by key=value pairs.
        Args:
            level: Log level (e.g., "INFO", "ERROR")
            message: Log message
            extra: Optional dict of extra fields (e.g., app name, document path)
        """
        level = level.upper()
        if not self.is_enabled_for(level):
            return
        structured = False
        if config:
            structured = getattr(config, 'LOG_STRUCTURED_JSON', False)
        if structured:
            log_entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "component": self.component,
                "log_type": level,
                "message": message,
            }
            if extra:
                log_entry.update(extra)
            msg = json.dumps(log_entry, default=str)
        else:
            parts = [message]
            if extra:
                for k, v in extra.items():
                    parts.append(f"{k}={v}")
            msg = " ".join([p for p in parts if p])
        self._log_to_console(msg, level=level)
        self._log_to_file(msg, level=level)


def set_log_level(level: str) -> None:
    """Apply a minimum level to every component logger created so far."""
    for component_logger in _LOGGERS:
        component_logger.set_level(level)
