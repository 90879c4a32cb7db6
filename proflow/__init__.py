"""ProFlow - ProPresenter document codec and template slide generator."""

import os
import subprocess

__version__ = "0.4.0"


def _get_git_revision() -> str:
    """Get the short git revision of the source checkout, if any."""
    pkg_dir = os.path.dirname(os.path.abspath(__file__))
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            cwd=pkg_dir,
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return "unknown"
    if result.returncode == 0:
        return result.stdout.strip()
    return "unknown"


__revision__ = _get_git_revision()
