"""
startup.py
Register the tracker to run whenever a new terminal opens.

Appends the executable's path to the user's shell rc file, once. Any
failure is logged and swallowed: registration must never stop the
reputation check itself from running.
"""

import logging
import os
import shlex
import sys
from pathlib import Path

from config import STARTUP_MARKER

logger = logging.getLogger("startup")


def shell_profile_path(shell, home):
    """Pick the rc file for a $SHELL value."""
    home = Path(home)
    shell = shell or ""
    if "zsh" in shell:
        return home / ".zshrc"
    if "bash" in shell:
        return home / ".bashrc"
    return home / ".profile"


def current_executable(argv0=None, interpreter=None):
    """
    Shell command that starts the tracker again.

    A console script or frozen binary is registered as-is. A plain .py
    file (``python tracker.py``, ``python -m tracker``) has no exec bit,
    so it is registered behind the interpreter that ran it. Returns None
    when there is nothing sensible to register.
    """
    argv0 = argv0 if argv0 is not None else (sys.argv[0] if sys.argv else "")
    interpreter = interpreter or sys.executable
    if not argv0 or argv0 == "-c":
        return None

    path = Path(argv0).resolve()
    if not path.is_file():
        return None
    if os.access(path, os.X_OK) and path.suffix != ".py":
        return str(path)
    if not interpreter:
        return None
    return f"{shlex.quote(interpreter)} {shlex.quote(str(path))}"


def install_on_startup(shell=None, home=None, executable=None):
    """
    Append the executable to the shell profile unless already present.

    Returns True if the profile was modified.
    """
    shell = os.environ.get("SHELL", "") if shell is None else shell
    profile_path = None

    try:
        home = Path.home() if home is None else home
        executable = executable or current_executable()
        if not executable:
            logger.warning("Could not determine a command to register")
            return False
        profile_path = shell_profile_path(shell, home)

        if profile_path.exists():
            content = profile_path.read_text(encoding="utf-8", errors="replace")
            if executable in content:
                logger.debug("Already registered in %s", profile_path)
                return False

        with open(profile_path, "a", encoding="utf-8") as f:
            f.write(f"\n{STARTUP_MARKER}\n{executable}\n")
    except (OSError, RuntimeError) as e:
        # Path.home() raises RuntimeError when no home directory is known
        logger.warning("Could not register in %s: %s", profile_path or "shell profile", e)
        return False

    print("Installed to run on terminal startup. Please restart your terminal.")
    return True
