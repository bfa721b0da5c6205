"""Turn checker errors into an LLM prompt.

`codepaste explain` runs the project's checker (`cargo check` for Rust,
`compileall` for Python), and wraps whatever it prints into a prompt asking
for an explanation and a fix.
"""

import subprocess
from pathlib import Path

from codepaste.config import CHECK_COMMANDS, Language
from codepaste.exceptions import ExplainError
from codepaste.formatters import fence_for


def default_command(language: Language) -> list[str]:
    return list(CHECK_COMMANDS[language])


def run_check(command: list[str], cwd: Path) -> str:
    """Run the checker and return its combined stdout and stderr, stripped.

    Raises:
        ExplainError: If the command cannot be started.
    """
    try:
        result = subprocess.run(  # noqa: S603
            command,
            cwd=cwd,
            capture_output=True,
            check=False,
        )
    except OSError as e:
        raise ExplainError(
            f"Failed to run {' '.join(command)}. Make sure {command[0]} is installed: {e}"
        ) from e
    stdout = result.stdout.decode("utf-8", errors="replace")
    stderr = result.stderr.decode("utf-8", errors="replace")
    return f"{stdout}{stderr}".strip()


def build_prompt(output: str, language: Language, context: str | None = None) -> str:
    """Build the prompt asking an assistant to explain checker output.

    Args:
        output (str): Combined checker output.
        language (Language): Project language, named in the prompt.
        context (str | None): Extra context supplied by the user.

    Returns:
        str: Prompt text.
    """
    parts = [f"Help me understand and fix these {language.title} errors:\n\n"]
    if context:
        parts.append(f"Additional context: {context}\n\n")
    fence = fence_for(output)
    parts.append(f"{fence}\n{output}\n{fence}\n\n")
    parts.append("Please explain what's wrong and suggest how to fix it.")
    return "".join(parts)
