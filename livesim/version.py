"""Version information."""

from __future__ import annotations

from datetime import datetime

COMMIT_VERSION = "v1.6.0"
COMMIT_DATE = "1733237682"  # epoch seconds


def get_version() -> str:
    """Return the version string, with the commit date when one is known."""
    try:
        seconds = int(COMMIT_DATE)
    except ValueError:
        seconds = 0
    msg = COMMIT_VERSION
    if COMMIT_DATE != "":
        msg += ", date: " + datetime.fromtimestamp(seconds).strftime("%Y-%m-%d")
    return msg


def check_version(print_version: bool) -> None:
    """Print the version if asked to."""
    if print_version:
        globals_print_version()


def print_version() -> None:
    """Print the version to stdout."""
    print(get_version())


globals_print_version = print_version