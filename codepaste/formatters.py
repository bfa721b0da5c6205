"""Output formatting for pastes.

Every file becomes a fenced code block tagged with a language hint. The first
line inside the fence is a comment holding the file's path relative to the
project root, written in the comment syntax of the file type.
"""

import re
from pathlib import Path

BINARY_PLACEHOLDER = "Binary file (not shown)"

_BACKTICKS = re.compile(r"`{3,}")

COMMENT_STYLES = {
    "rust": "// {}",
    "markdown": "<!-- {} -->",
    "rst": ".. {}",
}
DEFAULT_COMMENT_STYLE = "# {}"


def fence_for(content: str) -> str:
    """Return a backtick fence longer than any backtick run inside `content`."""
    longest = max((len(m.group()) for m in _BACKTICKS.finditer(content)), default=2)
    return "`" * (longest + 1)


class PasteFormatter:
    """Formats files as fenced, path-labelled code blocks."""

    def __init__(self, root_path: Path):
        """Initialize the paste formatter.

        Args:
            root_path (Path): Project root path, paths are shown relative to it.
        """
        self.root_path = root_path

    def format_file(self, file_path: Path) -> str:
        """Read a file and format it as a block.

        Args:
            file_path (Path): File to include.

        Returns:
            str: Formatted block.
        """
        return self.format_block(file_path, self._read_file_content(file_path))

    def format_block(self, file_path: Path, content: str) -> str:
        """Format already-transformed content of a file.

        Args:
            file_path (Path): File the content belongs to.
            content (str): Text to place inside the fence.

        Returns:
            str: Fenced block ending with a newline.
        """
        relative_path = file_path.relative_to(self.root_path).as_posix()
        lang_ext = self._get_language_ext(file_path)
        comment = COMMENT_STYLES.get(lang_ext, DEFAULT_COMMENT_STYLE).format(relative_path)
        body = content if content.endswith("\n") else content + "\n"
        fence = fence_for(content)
        return f"{fence}{lang_ext}\n{comment}\n{body}{fence}\n"

    def _read_file_content(self, file_path: Path) -> str:
        """Read the content of a file.

        Args:
            file_path (Path): File path to read.

        Returns:
            str: File content (or message for binary/unreadable files).
        """
        try:
            with open(file_path, encoding="utf-8") as f:
                return f.read()
        except UnicodeDecodeError:
            return BINARY_PLACEHOLDER
        except OSError as e:
            return f"Error reading file: {e}"

    def _get_language_ext(self, file_path: Path) -> str:
        """Determine the language hint for the code fence.

        Args:
            file_path (Path): File path.

        Returns:
            str: Language hint for Markdown code fences.
        """
        if not file_path.suffix:
            return "text" if file_path.name == "README" else ""

        ext_map = {
            ".rs": "rust",
            ".py": "python",
            ".pyi": "python",
            ".toml": "toml",
            ".md": "markdown",
            ".rst": "rst",
            ".txt": "text",
        }
        return ext_map.get(file_path.suffix, file_path.suffix[1:])
