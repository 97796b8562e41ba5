"""
Console output for tlsserve
Tagged log lines, colored when writing to a terminal
"""

import os
import sys


RESET = "\033[0m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"


def use_color(stream):
    """Color only real terminals, and respect NO_COLOR."""
    if os.environ.get('NO_COLOR') is not None:
        return False
    return hasattr(stream, 'isatty') and stream.isatty()


def format_line(tag, message, color=None):
    if color:
        return f"{color}[{tag}]{RESET} {message}"
    return f"[{tag}] {message}"


def _emit(tag, message, color, stream):
    print(format_line(tag, message, color if use_color(stream) else None), file=stream, flush=True)


def info(tag, message):
    _emit(tag, message, GREEN, sys.stdout)


def warn(tag, message):
    _emit(tag, message, YELLOW, sys.stdout)


def error(tag, message):
    _emit(tag, message, RED, sys.stderr)
