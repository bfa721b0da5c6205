"""Core functionality for building pastes.

This module defines the `CodePaster` class which walks a project, collects the
files on the allow-list, optionally extracts their functions for selection, and
renders everything into one text ready to paste into an LLM prompt.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from codepaste.config import MANIFEST_FILES, README_FILES, Config, Language
from codepaste.exceptions import ExtractionError
from codepaste.extractors import FunctionInfo, elide, extract_file, extract_functions, extract_only
from codepaste.filters import FileFilter
from codepaste.formatters import PasteFormatter
from codepaste.utils import estimate_tokens


@dataclass
class Paste:
    """Represents a generated paste.

    Attributes:
        content (str): Formatted text, stripped of surrounding whitespace.
        file_count (int): Number of file blocks in the content.
        token_count (int): Approximate number of tokens in the content.
        warnings (list[str]): Problems met while building, e.g. unparsable files.
    """

    content: str
    file_count: int
    token_count: int
    warnings: list[str] = field(default_factory=list)


class CodePaster:
    """Main class for creating pastes.

    Collects project files, extracts function declarations and renders the
    paste with either whole files, elided bodies or only selected functions.
    """

    def __init__(
        self,
        root_path: Path,
        language: Language,
        config: Config | None = None,
        include_manifest: bool = False,
        include_readme: bool = False,
        model_encoding: str | None = None,
    ):
        """Initialize CodePaster.

        Args:
            root_path (Path): Root path to the project.
            language (Language): Programming language used.
            config (Config | None): Optional filter configuration.
            include_manifest (bool): Include the manifest file (Cargo.toml, pyproject.toml).
            include_readme (bool): Include README files.
            model_encoding (str | None): tiktoken encoding for token counts, None to estimate.
        """
        self.root_path = root_path.resolve()
        self.language = language
        self.config = config or Config()
        self.filter = FileFilter(
            self.root_path,
            self.language,
            self.config,
            include_manifest=include_manifest,
            include_readme=include_readme,
        )
        self.formatter = PasteFormatter(self.root_path)
        self.model_encoding = model_encoding
        self.warnings: list[str] = []

    def collect_files(self) -> list[Path]:
        """Collect the files that belong in the paste, in output order."""
        files: list[Path] = []
        for root, dirs, filenames in os.walk(self.root_path):
            root_path = Path(root)
            dirs[:] = sorted(d for d in dirs if not self.filter.should_ignore(root_path / d))
            for filename in filenames:
                file_path = root_path / filename
                if file_path.is_file() and self.filter.should_include(file_path):
                    files.append(file_path)
        return self._sort_files(files)

    def collect_functions(self) -> list[FunctionInfo]:
        """Extract functions from every source file, sorted by display name.

        Files that cannot be parsed are skipped and recorded in `warnings`.
        """
        functions: list[FunctionInfo] = []
        for file_path in self.collect_files():
            if not self.filter.is_source(file_path):
                continue
            try:
                functions.extend(extract_file(file_path, self.root_path, self.language))
            except ExtractionError as e:
                self.warnings.append(str(e))
        return sorted(functions, key=lambda f: f.display_name)

    def create_paste(self, selected: list[str] | None = None, only: bool = False) -> Paste:
        """Generate the paste.

        Args:
            selected (list[str] | None): Display names of selected functions. None
                includes every file unchanged.
            only (bool): Emit only the selected functions and skip non-source files.

        Returns:
            Paste: Generated paste.
        """
        blocks: list[str] = []
        selected_names = set(selected) if selected is not None else None

        for file_path in self.collect_files():
            if selected_names is None:
                blocks.append(self.formatter.format_file(file_path))
                continue

            if not self.filter.is_source(file_path):
                if not only:
                    blocks.append(self.formatter.format_file(file_path))
                continue

            block = self._format_source(file_path, selected_names, only)
            if block:
                blocks.append(block)

        content = "\n".join(blocks).strip()
        return Paste(
            content=content,
            file_count=len(blocks) if content else 0,
            token_count=estimate_tokens(content, self.model_encoding),
            warnings=list(dict.fromkeys(self.warnings)),
        )

    def _format_source(self, file_path: Path, selected_names: set[str], only: bool) -> str | None:
        """Transform a source file for the current selection and format it."""
        relative_path = self._relative(file_path)
        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.warnings.append(f"Failed to read {relative_path}: {e}")
            return None

        try:
            functions = extract_functions(source, relative_path, self.language)
        except ExtractionError as e:
            self.warnings.append(str(e))
            return None if only else self.formatter.format_block(file_path, source)

        keep = {f.qualname for f in functions if f.display_name in selected_names}
        if only:
            transformed = extract_only(source, functions, keep)
        else:
            transformed = elide(source, functions, keep, self.language)

        if not transformed.strip():
            return None
        return self.formatter.format_block(file_path, transformed)

    def _relative(self, file_path: Path) -> str:
        return file_path.relative_to(self.root_path).as_posix()

    def _sort_files(self, files: list[Path]) -> list[Path]:
        """Order files: manifest first, then README files, then sources by path."""
        priority_files = {MANIFEST_FILES[self.language]: 0}
        priority_files.update({name: 1 for name in README_FILES})

        def sort_key(path: Path) -> tuple[int, int, str]:
            relative = path.relative_to(self.root_path)
            at_root = len(relative.parts) == 1
            priority = priority_files.get(path.name, 10) if at_root else 10
            return (priority, 0 if self.filter.is_source(path) else 1, relative.as_posix())

        return sorted(files, key=sort_key)
