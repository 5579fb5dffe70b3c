"""
Storybook Logging System

Clean terminal output for production + detailed file logging for debugging.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Any, Dict
import json


class StorybookLogger:
    """
    Two-mode logging system:
    - Terminal: Clean, timestamped key events only
    - Debug file: Full detailed logs for troubleshooting
    """

    def __init__(self, debug_mode: bool = False, settings=None, log_dir: Optional[Path] = None):
        self.debug_mode = debug_mode
        self.settings = settings
        self.log_dir = log_dir or Path("logs")

        # Storage debug log (JSONL) when enabled in settings
        if settings and settings.debug_storage:
            self.debug_log_dir = Path(settings.debug_log_dir)
            self.debug_log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.storage_log = self.debug_log_dir / f"storage_{timestamp}.jsonl"

        # Setup file logger for debug mode
        if debug_mode:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file = self.log_dir / f"storybook_debug_{timestamp}.txt"

            self.file_logger = logging.getLogger("storybook_debug")
            self.file_logger.setLevel(logging.DEBUG)

            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            self.file_logger.addHandler(file_handler)

            print(f"📝 Debug mode enabled. Logging to: {log_file}")

    def _timestamp(self) -> str:
        """Get formatted timestamp"""
        return datetime.now().strftime("%H:%M:%S")

    def _terminal_log(self, emoji: str, message: str, color: str = ""):
        """Print clean log to terminal"""
        timestamp = self._timestamp()

        # ANSI color codes
        colors = {
            "green": "\033[92m",
            "blue": "\033[94m",
            "yellow": "\033[93m",
            "red": "\033[91m",
            "cyan": "\033[96m",
            "reset": "\033[0m"
        }

        color_code = colors.get(color, "")
        reset = colors["reset"] if color_code else ""

        print(f"{color_code}[{timestamp}] {emoji} {message}{reset}")

    def _debug_log(self, level: str, component: str, message: str, data: Optional[dict] = None):
        """Write detailed log to debug file"""
        if self.debug_mode and hasattr(self, 'file_logger'):
            log_msg = f"{component} | {message}"
            if data:
                log_msg += f" | Data: {data}"

            log_func = getattr(self.file_logger, level.lower(), self.file_logger.info)
            log_func(log_msg)

    # ===== Terminal Output Methods =====

    def api_request(self, method: str, endpoint: str, uid: str = ""):
        """Log API request"""
        msg = f"API {method} {endpoint}"
        if uid:
            msg += f" (user: {uid[:8]})"
        self._terminal_log("🌐", msg)
        self._debug_log("info", "API", f"{method} request", {
            "method": method,
            "endpoint": endpoint,
            "uid": uid
        })

    def placeholders_resolved(self, context: str, texts: int, tokens: int, resolved: int,
                              duration: Optional[float] = None):
        """Log one batch resolution pass"""
        duration_str = f" in {duration*1000:.0f}ms" if duration else ""
        msg = f"Resolved {resolved}/{tokens} placeholder(s) across {texts} text(s) for {context}{duration_str}"
        color = "green" if resolved == tokens else "yellow"
        self._terminal_log("🔗", msg, color)
        self._debug_log("info", "PLACEHOLDERS", f"Resolved for {context}", {
            "texts": texts,
            "tokens": tokens,
            "resolved": resolved,
            "duration": duration
        })

    def error(self, component: str, message: str, error: Exception = None):
        """Log error"""
        msg = f"Error in {component}: {message}"
        if error:
            msg += f" ({type(error).__name__})"
        self._terminal_log("⚠️", msg, "red")
        self._debug_log("error", component, message, {
            "error_type": type(error).__name__ if error else None,
            "error_message": str(error) if error else None
        })

    # ===== Storage Debug Logging =====

    def _write_json_log(self, log_file: Path, data: Dict[str, Any]):
        """Write structured JSON log entry"""
        try:
            with open(log_file, 'a') as f:
                json.dump(data, f)
                f.write('\n')
        except OSError as e:
            self.error("LOGGER", f"Failed to write JSON log: {e}")

    def storage_operation(self, operation: str, path: str, data_summary: str,
                          size_bytes: int = 0, duration: Optional[float] = None):
        """Log Firestore write operations"""
        if not self.settings or not self.settings.debug_storage:
            return

        duration_str = f" in {duration*1000:.0f}ms" if duration else ""
        msg = f"Storage {operation.upper()} → {path} ({size_bytes} bytes){duration_str}"
        self._terminal_log("💾", msg, "yellow")

        log_data = {
            "timestamp": datetime.now().isoformat(),
            "type": "storage_operation",
            "operation": operation,
            "path": path,
            "data_summary": data_summary,
            "size_bytes": size_bytes,
            "duration_seconds": duration
        }

        if hasattr(self, 'storage_log'):
            self._write_json_log(self.storage_log, log_data)

    def storage_read(self, path: str, result_summary: str, size_bytes: int = 0,
                     duration: Optional[float] = None):
        """Log Firestore reads"""
        if not self.settings or not self.settings.debug_storage:
            return

        duration_str = f" in {duration*1000:.0f}ms" if duration else ""
        msg = f"Storage READ ← {path} ({result_summary}){duration_str}"
        self._terminal_log("📖", msg, "blue")

        log_data = {
            "timestamp": datetime.now().isoformat(),
            "type": "storage_read",
            "path": path,
            "result_summary": result_summary,
            "size_bytes": size_bytes,
            "duration_seconds": duration
        }

        if hasattr(self, 'storage_log'):
            self._write_json_log(self.storage_log, log_data)


# Global logger instance
_logger: Optional[StorybookLogger] = None


def get_logger(settings=None) -> StorybookLogger:
    """Get global logger instance"""
    global _logger
    if _logger is None:
        # Check environment for debug mode
        import os
        debug_mode = os.getenv("DEBUG_MODE", "false").lower() == "true"
        _logger = StorybookLogger(debug_mode=debug_mode, settings=settings)
    return _logger


def init_logger(debug_mode: bool = False, settings=None):
    """Initialize logger with specific debug mode and settings"""
    global _logger
    _logger = StorybookLogger(debug_mode=debug_mode, settings=settings)
    return _logger


def reset_logger():
    """Reset the global logger (used by tests)"""
    global _logger
    _logger = None
