"""Locate a Chromium-family browser executable for the session."""
import os
import sys
from pathlib import Path
from typing import List, Optional

from ..utils.logger import logger


class BrowserNotFoundError(RuntimeError):
    """No usable browser executable could be found."""


def candidate_paths(platform: Optional[str] = None) -> List[Path]:
    """Common install locations for Chrome/Chromium/Edge on a platform.

    Args:
        platform: Value shaped like sys.platform. Defaults to the current one

    Returns:
        Candidate executable paths in preference order
    """
    platform = platform or sys.platform

    if platform.startswith("win"):
        program_files = os.environ.get("PROGRAMFILES", r"C:\Program Files")
        program_files_x86 = os.environ.get("PROGRAMFILES(X86)", r"C:\Program Files (x86)")
        local_app_data = os.environ.get("LOCALAPPDATA", "")
        paths = [
            Path(program_files) / "Google" / "Chrome" / "Application" / "chrome.exe",
            Path(program_files_x86) / "Google" / "Chrome" / "Application" / "chrome.exe",
            Path(program_files) / "Microsoft" / "Edge" / "Application" / "msedge.exe",
            Path(program_files_x86) / "Microsoft" / "Edge" / "Application" / "msedge.exe",
        ]
        if local_app_data:
            paths.insert(2, Path(local_app_data) / "Google" / "Chrome" / "Application" / "chrome.exe")
        return paths

    if platform == "darwin":
        return [
            Path("/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"),
            Path("/Applications/Chromium.app/Contents/MacOS/Chromium"),
            Path("/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge"),
        ]

    return [
        Path("/usr/bin/google-chrome"),
        Path("/usr/bin/google-chrome-stable"),
        Path("/usr/bin/chromium"),
        Path("/usr/bin/chromium-browser"),
        Path("/snap/bin/chromium"),
        Path("/usr/bin/microsoft-edge"),
    ]


def find_browser_executable(
    configured: Optional[str] = None,
    bundled: Optional[str] = None,
    platform: Optional[str] = None,
) -> str:
    """Resolve the browser executable to launch.

    Order: the configured path (CHROME_PATH), common install locations for
    the platform, then Playwright's bundled Chromium.

    Args:
        configured: Explicitly configured executable path
        bundled: Path of Playwright's bundled Chromium, if installed
        platform: Value shaped like sys.platform

    Returns:
        Path of an existing executable

    Raises:
        BrowserNotFoundError: If none of the candidates exist
    """
    configured = (configured or "").strip()
    if configured:
        if Path(configured).exists():
            return configured
        logger.warning(f"[Browser] Configured CHROME_PATH does not exist: {configured}")

    for path in candidate_paths(platform):
        if path.exists():
            return str(path)

    if bundled and Path(bundled).exists():
        return bundled

    raise BrowserNotFoundError(
        "No browser executable found. Set CHROME_PATH or run `playwright install chromium`."
    )
