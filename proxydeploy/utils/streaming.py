"""
Streaming utilities for command output in proxydeploy.

Long-running local and remote commands (ssh, rsync, scp, git) have their
output forwarded line by line into the logging layer while they run, so a
failure mid-stage leaves a readable trail in the console and the run log.
"""

import subprocess
import threading
import time
from contextlib import contextmanager
from typing import IO, List, Optional, Sequence, Tuple

from .logging import log_error, log_info, log_output, is_verbose


@contextmanager
def stream_process_output(process: subprocess.Popen,
                          timeout: Optional[int] = None,
                          progress_interval: int = 30,
                          prefix: str = "  "):
    """Context manager for streaming a process's output.

    Args:
        process: Subprocess Popen object with piped stdout and stderr
        timeout: Maximum execution time in seconds (None waits forever)
        progress_interval: Seconds between "still running" notices
        prefix: Prefix for logged output lines

    Yields:
        Tuple of (stdout_lines, stderr_lines, return_code)
    """
    stdout_lines: List[str] = []
    stderr_lines: List[str] = []
    output_lock = threading.Lock()

    def reader(stream: IO[str], sink: List[str]) -> None:
        for line in iter(stream.readline, ''):
            if line:
                line = line.rstrip()
                with output_lock:
                    sink.append(line)
                    log_output(f"{prefix}{line}")

    threads = [
        threading.Thread(target=reader, args=(process.stdout, stdout_lines), daemon=True),
        threading.Thread(target=reader, args=(process.stderr, stderr_lines), daemon=True),
    ]
    for thread in threads:
        thread.start()

    start_time = time.time()
    last_progress_time = start_time

    try:
        while process.poll() is None:
            elapsed = time.time() - start_time

            if timeout and elapsed > timeout:
                log_error(f"Process timed out after {timeout}s")
                process.kill()
                process.wait()
                break

            if not is_verbose() and time.time() - last_progress_time > progress_interval:
                elapsed_min = int(elapsed / 60)
                elapsed_sec = int(elapsed % 60)
                log_info(f"{prefix}Still running... ({elapsed_min}m {elapsed_sec}s elapsed)")
                last_progress_time = time.time()

            time.sleep(0.2)

        for thread in threads:
            thread.join(timeout=10)

        yield stdout_lines, stderr_lines, process.returncode
    finally:
        # An interrupt must not leave the child running
        if process.poll() is None:
            process.kill()
            process.wait()
        for thread in threads:
            thread.join(timeout=5)


def execute_with_streaming(cmd: Sequence[str], input_text: Optional[str] = None,
                           timeout: Optional[int] = None,
                           progress_interval: int = 30,
                           prefix: str = "  ") -> Tuple[int, List[str], List[str]]:
    """Execute a command, streaming its output into the log.

    Args:
        cmd: Command as list
        input_text: Content sent on stdin (optional)
        timeout: Maximum execution time in seconds
        progress_interval: Seconds between progress updates
        prefix: Prefix for log messages

    Returns:
        Tuple of (return_code, stdout_lines, stderr_lines)

    Raises:
        FileNotFoundError: If the executable does not exist
    """
    process = subprocess.Popen(
        list(cmd),
        stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        bufsize=1,  # Line buffered
    )

    if input_text is not None:
        process.stdin.write(input_text)
        process.stdin.close()

    with stream_process_output(process, timeout, progress_interval, prefix) as (
            stdout_lines, stderr_lines, returncode):
        return returncode, stdout_lines, stderr_lines
