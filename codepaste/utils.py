"""Utility functions for codepaste."""

import platform
import shutil
import subprocess
from pathlib import Path

import tiktoken


def _copy_mac(text: str) -> bool:
    """Copy text to clipboard on macOS using pbcopy."""
    pbcopy = shutil.which("pbcopy")
    if not pbcopy:
        return False
    result = subprocess.run([pbcopy], input=text.encode("utf-8"), check=False)  # noqa: S603
    return result.returncode == 0


def _copy_linux(text: str) -> bool:
    """Copy text to clipboard on Linux using wl-copy, xclip or xsel."""
    for cmd in [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]:
        binary = shutil.which(cmd[0])
        if not binary:
            continue
        result = subprocess.run([binary] + cmd[1:], input=text.encode("utf-8"), check=False)  # noqa: S603
        if result.returncode == 0:
            return True
    return False


def _copy_windows(text: str) -> bool:
    """Copy text to clipboard on Windows using clip."""
    clip = shutil.which("clip")
    if not clip:
        return False
    result = subprocess.run([clip], input=text.encode("utf-8"), check=False)  # noqa: S603
    return result.returncode == 0


def copy_to_clipboard(text: str) -> bool:
    """
    Copy text to system clipboard.
    Returns True if successful, False otherwise.
    """
    try:
        system = platform.system()
        if system == "Darwin":
            return _copy_mac(text)
        if system == "Linux":
            return _copy_linux(text)
        if system == "Windows":
            return _copy_windows(text)
        return False
    except OSError:
        return False


def detect_language(path: Path) -> str | None:
    """Auto-detect the programming language of a project."""
    if (path / "Cargo.toml").exists():
        return "rust"

    if any(
        (path / file).exists()
        for file in ["pyproject.toml", "setup.py", "setup.cfg", "requirements.txt"]
    ):
        return "python"

    for f in path.rglob("*"):
        if any(part.startswith(".") for part in f.relative_to(path).parts):
            continue
        if f.suffix == ".rs":
            return "rust"
        if f.suffix == ".py":
            return "python"

    return None


def estimate_tokens(text: str, encoding: str | None = None) -> int:
    """Return the token count of `text`.

    Without an encoding the count is approximated as one token per four
    characters. With an encoding name the text is tokenized with tiktoken.
    """
    if not encoding:
        return len(text) // 4
    return len(tiktoken.get_encoding(encoding).encode(text))
