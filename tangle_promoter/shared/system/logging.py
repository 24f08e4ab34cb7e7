"""
Centralized Logger with Rich Console
====================================
Leveled message sink used by every component.

Usage:
    from tangle_promoter.shared.system.logging import Logger

    Logger.info("[PROMOTER] Fetching transaction objects")
    Logger.success("[PROMOTER] Reattached bundle")
    Logger.warning("Could not find any consistent tail")
    Logger.error("Reattachment error")
    Logger.section("Promotion Run")
"""

import os
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.text import Text

file_logger = logging.getLogger("TanglePromoter")
file_logger.setLevel(logging.DEBUG)


# =============================================================================
# SOURCE ICONS (for visual scanning)
# =============================================================================

SOURCE_ICONS = {
    "SYSTEM": "🛸",
    "PROMOTER": "📣",
    "SCANNER": "🔍",
    "IRI": "📡",
    "NODES": "🔀",
    "STATE": "💾",
}

# Level colors for Rich
LEVEL_STYLES = {
    "INFO": "cyan",
    "SUCCESS": "green bold",
    "WARNING": "yellow",
    "ERROR": "red bold",
    "DEBUG": "dim",
    "SECTION": "magenta bold",
}

_console = Console(stderr=True)


def setup_file_logging(log_dir: str, run_id: str = None) -> str:
    """
    Attach a per-run rotating file handler. Returns the log file path.

    Each run gets its own file so a single promotion pass can be audited.
    """
    os.makedirs(log_dir, exist_ok=True)
    run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"promoter_{run_id}.log")

    close_file_logging()

    handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    file_logger.addHandler(handler)
    return log_file


def close_file_logging() -> None:
    """Detach and close the per-run file handler."""
    for existing in list(file_logger.handlers):
        file_logger.removeHandler(existing)
        existing.close()


# =============================================================================
# LOGGER CLASS
# =============================================================================

class Logger:
    """
    Static logger with Rich console output and an optional file mirror.

    Messages may start with a [SOURCE] tag which becomes its own column.
    """

    _silent_mode = False

    @staticmethod
    def _timestamp() -> str:
        """High-precision timestamp (HH:MM:SS.ms)."""
        now = datetime.now()
        return f"{now.strftime('%H:%M:%S')}.{now.microsecond // 1000:03d}"

    @staticmethod
    def _parse_source(message: str) -> tuple:
        """Extract [SOURCE] tag from message if present."""
        stripped = message.strip()
        if stripped.startswith("[") and "]" in stripped:
            tag_end = stripped.index("]")
            source = stripped[1:tag_end].upper()
            if 0 < len(source) < 15:
                return source, stripped[tag_end + 1:].strip()
        return "SYSTEM", message

    @staticmethod
    def _format_console(level: str, message: str, source: str) -> None:
        if Logger._silent_mode:
            return

        from tangle_promoter.config.settings import Settings
        if getattr(Settings, "SILENT_MODE", False):
            return

        icon = SOURCE_ICONS.get(source, "")
        style = LEVEL_STYLES.get(level, "white")

        line = Text()
        line.append(f"{Logger._timestamp()} ", style="dim")
        line.append(f"| {level[:8].ljust(8)} ", style=style)
        line.append(f"| {source[:10].ljust(10)} | ", style="dim")
        line.append(f"{icon} {message}" if icon else message)
        _console.print(line)

    @staticmethod
    def _log_to_file(level: int, message: str, source: str = "") -> None:
        file_logger.log(level, f"[{source}] {message}" if source else message)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @staticmethod
    def info(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("INFO", msg, source)
        Logger._log_to_file(logging.INFO, msg, source)

    @staticmethod
    def success(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("SUCCESS", msg, source)
        Logger._log_to_file(logging.INFO, f"✅ {msg}", source)

    @staticmethod
    def warning(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("WARNING", msg, source)
        Logger._log_to_file(logging.WARNING, msg, source)

    @staticmethod
    def error(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("ERROR", msg, source)
        Logger._log_to_file(logging.ERROR, msg, source)

    @staticmethod
    def debug(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._log_to_file(logging.DEBUG, msg, source)

    @staticmethod
    def section(title: str) -> None:
        """Print a section header."""
        if not Logger._silent_mode:
            _console.print()
            _console.rule(f"[bold magenta]{title}[/]", style="dim")
        Logger._log_to_file(logging.INFO, f"=== {title} ===", "SYSTEM")

    @staticmethod
    def set_silent(silent: bool) -> None:
        """Enable/disable console output."""
        Logger._silent_mode = silent
