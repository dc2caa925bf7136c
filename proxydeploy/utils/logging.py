"""
Logging and output utilities for proxydeploy.

Console output uses rich with colored level prefixes. Every message is also
appended, timestamped and uncolored, to the run log of the current
invocation when one is open. Registered secrets are masked in both.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from rich.console import Console
from rich.markup import escape

from ..config.settings import LOG_LINE_TIMESTAMP_FORMAT, run_log_name

# Initialize console for colored output
console = Console()

# Global verbose mode flag
_verbose_mode = False

# Global quiet flag - when True (JSON output), nothing is printed to stdout
_quiet_mode = False

# Run log state
_run_log_console: Optional[Console] = None
_run_log_file: Optional[TextIO] = None
_run_log_path: Optional[Path] = None

# Values that must never be printed in full
_secrets: List[str] = []


class Colors:
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    PURPLE = "purple"
    CYAN = "cyan"


def mask(value: Optional[str]) -> str:
    """Mask a credential for display.

    Values of six characters or fewer are fully redacted; longer values keep
    their first and last three characters.
    """
    if not value:
        return "(none)"
    if len(value) <= 6:
        return "***"
    return f"{value[:3]}***{value[-3:]}"


def register_secret(value: Optional[str]) -> None:
    """Mask every later occurrence of ``value`` in console and run log output."""
    if value and value not in _secrets:
        _secrets.append(value)
        # Longest first so a secret containing another is replaced whole
        _secrets.sort(key=len, reverse=True)


def clear_secrets() -> None:
    _secrets.clear()


def redact(message: str) -> str:
    """Replace registered secrets in ``message`` with their masked form.

    Secrets of six characters or fewer are only replaced where they appear as
    URL credentials (between ``/`` or ``:`` and ``@``).
    """
    for secret in _secrets:
        if secret not in message:
            continue
        if len(secret) <= 6:
            message = re.sub(r"(?<=[/:])" + re.escape(secret) + r"(?=@)", mask(secret), message)
        else:
            message = message.replace(secret, mask(secret))
    return message


def set_verbose(enabled: bool) -> None:
    """Set verbose mode for logging output."""
    global _verbose_mode
    _verbose_mode = enabled


def is_verbose() -> bool:
    """Check if verbose mode is enabled."""
    return _verbose_mode


def set_quiet(enabled: bool) -> None:
    """Set quiet mode - when enabled, nothing is printed to the console."""
    global _quiet_mode
    _quiet_mode = enabled


def open_run_log(log_dir: Path, started_at: Optional[datetime] = None) -> Path:
    """Open the append-only run log for this invocation.

    Args:
        log_dir: Directory the log file is created in
        started_at: Run start time, used to name the file

    Returns:
        Path to the run log
    """
    global _run_log_console, _run_log_file, _run_log_path
    close_run_log()

    started_at = started_at or datetime.now()
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    _run_log_path = log_dir / run_log_name(started_at)
    _run_log_file = open(_run_log_path, "a", encoding="utf-8")
    _run_log_console = Console(
        file=_run_log_file,
        no_color=True,
        highlight=False,
        markup=False,
        emoji=False,
        soft_wrap=True,
        width=10000,
    )
    return _run_log_path


def close_run_log() -> None:
    """Flush and close the run log, if one is open."""
    global _run_log_console, _run_log_file, _run_log_path
    if _run_log_file is not None:
        _run_log_file.flush()
        _run_log_file.close()
    _run_log_console = None
    _run_log_file = None
    _run_log_path = None


def get_run_log_path() -> Optional[Path]:
    return _run_log_path


def _write_run_log(level: str, message: str) -> None:
    if _run_log_console is None:
        return
    timestamp = datetime.now().strftime(LOG_LINE_TIMESTAMP_FORMAT)
    _run_log_console.print(f"[{timestamp}] {level}: {message}")
    _run_log_file.flush()


def _emit(level: str, color: str, message: str, show: bool) -> None:
    message = redact(message)
    _write_run_log(level, message)
    if show and not _quiet_mode:
        console.print(f"[{color}][{level}][/{color}] {escape(message)}")


def log_info(message: str) -> None:
    """Log an info message (shown on the console only in verbose mode)."""
    _emit("INFO", Colors.BLUE, message, _verbose_mode)


def log_success(message: str) -> None:
    """Log a success message."""
    _emit("SUCCESS", Colors.GREEN, message, True)


def log_warning(message: str) -> None:
    """Log a warning message."""
    _emit("WARNING", Colors.YELLOW, message, True)


def log_error(message: str) -> None:
    """Log an error message."""
    _emit("ERROR", Colors.RED, message, True)


def log_phase(message: str) -> None:
    """Log a phase message."""
    _emit("PHASE", Colors.PURPLE, message, True)


def log_output(message: str) -> None:
    """Log a line of command output (console only in verbose mode)."""
    _emit("OUTPUT", Colors.CYAN, message, _verbose_mode)


def print_plain(message: str) -> None:
    """Print plain text without any prefix."""
    message = redact(message)
    _write_run_log("INFO", message)
    if not _quiet_mode:
        console.print(escape(message))


def error_exit(message: str, exit_code: int = 1) -> None:
    """Log an error and exit."""
    log_error(message)
    close_run_log()
    raise SystemExit(int(exit_code))
