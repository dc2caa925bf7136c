"""
JSON output utilities for proxydeploy.

This module provides standardized JSON output for CLI commands so calling
automation can consume run summaries.
"""

import json
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .logging import log_error, log_success, redact


class JSONOutput:
    """Standardized JSON output formatter for proxydeploy commands."""

    @staticmethod
    def success(message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Format a successful operation result."""
        result = {
            "success": True,
            "message": message,
            "timestamp": datetime.now().isoformat()
        }
        if data:
            result["data"] = data
        return result

    @staticmethod
    def error(message: str, error_code: Optional[str] = None,
              details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Format an error result."""
        result = {
            "success": False,
            "error": message,
            "timestamp": datetime.now().isoformat()
        }
        if error_code:
            result["error_code"] = error_code
        if details:
            result["details"] = details
        return result

    @staticmethod
    def print_json(data: Union[Dict[str, Any], List[Any]]) -> None:
        """Print data as JSON to stdout, with registered secrets masked."""
        print(redact(json.dumps(data, indent=2, default=str)))
        sys.stdout.flush()

    @staticmethod
    def print_success(message: str, data: Optional[Dict[str, Any]] = None,
                      json_output: bool = False) -> None:
        """Print success message, optionally as JSON."""
        if json_output:
            JSONOutput.print_json(JSONOutput.success(message, data))
        else:
            log_success(message)

    @staticmethod
    def print_error(message: str, error_code: Optional[str] = None,
                    details: Optional[Dict[str, Any]] = None,
                    json_output: bool = False) -> None:
        """Print error message, optionally as JSON."""
        if json_output:
            log_error(message)
            JSONOutput.print_json(JSONOutput.error(message, error_code, details))
        else:
            log_error(message)
