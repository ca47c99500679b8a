#!/usr/bin/env python3
"""
Shared utilities for the OpenG benchmark driver.

This module provides constants, console output and JSON loading used across
the opengbench library modules.

Standalone usage:
    python -m opengbench.lib.core.utils --list-algorithms
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

# =============================================================================
# Engine Definitions (must match the executables built by OpenG)
# =============================================================================

# Algorithm tag -> executable name under the binary directory
ALGORITHMS = {
    "BFS": "bfs",
    "SSSP": "sssp",
    "PR": "pr",
    "CDLP": "cdlp",
    "LCC": "lcc",
    "WCC": "wcc",
}

# Graph preprocessor shipped with OpenG (VE csv -> CSR)
CSR_GENERATOR = "genCSR"

# Binary sub-directories under <openg home>/bin
BINARY_VARIANT_STANDARD = "standard"
BINARY_VARIANT_GRANULA = "granula"

# Transcoded graph file names inside a graph's intermediate directory
VERTEX_FILE = "vertex.csv"
EDGE_FILE = "edge.csv"

EDGE_DELIMITERS = ("|", " ")
DEFAULT_EDGE_DELIMITER = "|"

# Root of the stdlib logger hierarchy used by library modules
LOGGER_NAME = "opengbench"


def get_timestamp() -> str:
    """Return current timestamp string for file naming."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


# =============================================================================
# Console Output
# =============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    GREEN = '\033[92m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    RESET = '\033[0m'


class Logger:
    """
    Console logger with levels and colors.

    Used by the command line driver for user-facing output. Library modules
    log through the stdlib ``logging`` hierarchy under ``opengbench``.
    """

    LEVELS = {"DEBUG": 0, "INFO": 1, "WARNING": 2, "ERROR": 3}

    SYMBOLS = {
        "success": "✓",
        "error": "✗",
    }

    def __init__(self, level: str = "INFO", use_colors: bool = True):
        """
        Initialize logger.

        Args:
            level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
            use_colors: Enable colored output (auto-disabled if not TTY)
        """
        self.level = self.LEVELS.get(level.upper(), 1)
        self.use_colors = use_colors and sys.stdout.isatty()

    def set_level(self, level: str) -> None:
        self.level = self.LEVELS.get(level.upper(), 1)

    def _log(self, level: str, message: str, color: str = "",
             symbol: str = "") -> None:
        if self.LEVELS.get(level, 0) < self.level:
            return

        timestamp = datetime.now().strftime("%H:%M:%S")
        if symbol:
            formatted = f"[{timestamp}] {symbol} {message}"
        else:
            formatted = f"[{timestamp}] [{level}] {message}"

        if color and self.use_colors:
            print(f"{color}{formatted}{Colors.RESET}")
        else:
            print(formatted)

    def info(self, message: str) -> None:
        self._log("INFO", message)

    def success(self, message: str) -> None:
        """Log success message (green with checkmark)."""
        self._log("INFO", message, Colors.GREEN, self.SYMBOLS["success"])

    def error(self, message: str) -> None:
        """Log error message (red with X)."""
        self._log("ERROR", message, Colors.RED, self.SYMBOLS["error"])

    def header(self, text: str, char: str = "═", width: int = 60) -> None:
        """Print a section header."""
        print()
        print(char * width)
        if self.use_colors:
            print(f"  {Colors.BOLD}{text}{Colors.RESET}")
        else:
            print(f"  {text}")
        print(char * width)


# Global console logger instance
log = Logger()


# =============================================================================
# JSON Utilities
# =============================================================================

def load_json(path: Path) -> Dict:
    """Load a JSON file. Missing or invalid files propagate their error."""
    with open(path, "r") as f:
        return json.load(f)


# =============================================================================
# Formatting
# =============================================================================

def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 0.001:
        return f"{seconds * 1_000_000:.1f}µs"
    elif seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def print_summary_box(title: str, items: Dict[str, Any], width: int = 50) -> None:
    """
    Print a summary box with key-value pairs.

    Example output:
        ╔══════════════════════════════════════════════╗
        ║  OpenG Run Summary                           ║
        ╠══════════════════════════════════════════════╣
        ║  Algorithm:     PR                           ║
        ║  Exit code:     0                            ║
        ╚══════════════════════════════════════════════╝
    """
    inner_width = width - 4
    print(f"╔{'═' * (width - 2)}╗")
    print(f"║  {title:<{inner_width}}║")
    print(f"╠{'═' * (width - 2)}╣")
    for key, value in items.items():
        line = f"{key}: {value}"
        print(f"║  {line:<{inner_width}}║")
    print(f"╚{'═' * (width - 2)}╝")


def main():
    """CLI for utility functions."""
    import argparse

    parser = argparse.ArgumentParser(description="opengbench utilities")
    parser.add_argument("--list-algorithms", action="store_true",
                        help="List supported algorithms and their executables")
    args = parser.parse_args()

    if args.list_algorithms:
        print("\nSupported algorithms:")
        print("-" * 30)
        for tag, executable in ALGORITHMS.items():
            print(f"  {tag:6s} -> {executable}")
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
