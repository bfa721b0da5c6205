"""File filtering logic for codepaste.

This module defines the `FileFilter` class that decides which files of a project
end up in the paste: source files of the project language, and optionally the
manifest and README files, minus everything matched by the ignore rules.
"""

import fnmatch
from pathlib import Path

from codepaste.config import (
    DEFAULT_IGNORE_PATTERNS,
    MANIFEST_FILES,
    README_FILES,
    SOURCE_EXTENSIONS,
    Config,
    Language,
)


class FileFilter:
    """Handles file filtering based on an allow-list and ignore patterns.

    Attributes:
        root_path (Path): Root project directory.
        language (Language): Programming language of the project.
        config (Config): Configuration object with user rules.
        ignore_patterns (set[str]): Combined ignore patterns.
        allowed_names (set[str]): Exact file names included regardless of extension.
        source_extensions (set[str]): Extensions of source files.
    """

    def __init__(
        self,
        root_path: Path,
        language: Language,
        config: Config,
        include_manifest: bool = False,
        include_readme: bool = False,
    ):
        """Initialize the file filter.

        Args:
            root_path (Path): Root directory of the project.
            language (Language): Programming language.
            config (Config): Filtering configuration.
            include_manifest (bool): Whether the manifest file is part of the allow-list.
            include_readme (bool): Whether README files are part of the allow-list.
        """
        self.root_path = root_path
        self.language = language
        self.config = config
        self.ignore_patterns = self._get_ignore_patterns()
        self.source_extensions = set(SOURCE_EXTENSIONS[language])
        self.allowed_names: set[str] = set()
        if include_manifest:
            self.allowed_names.add(MANIFEST_FILES[language])
        if include_readme:
            self.allowed_names.update(README_FILES)

    def is_source(self, path: Path) -> bool:
        """Return True if the file is a source file of the project language."""
        return path.suffix in self.source_extensions

    def should_include(self, path: Path) -> bool:
        """Check whether a file is on the allow-list and not ignored.

        Args:
            path (Path): File path inside the root.

        Returns:
            bool: True if the file belongs in the paste.
        """
        if path.name not in self.allowed_names and not self.is_source(path):
            return False
        return not self.should_ignore(path)

    def should_ignore(self, path: Path) -> bool:
        """Check if a path should be ignored.

        Hidden entries (name starting with a dot) are always ignored, then default,
        `.gitignore`, configured and excluded patterns are matched.

        Args:
            path (Path): File/directory path.

        Returns:
            bool: True if the file/directory should be skipped.
        """
        if path.name.startswith("."):
            return True
        if self._matches_patterns(path, self.ignore_patterns):
            return True
        return self._matches_patterns(path, self.config.exclude_patterns)

    def _matches_patterns(self, path: Path, patterns) -> bool:
        """Check if path matches any of the given patterns.

        Args:
            path (Path): Path to file or directory.
            patterns (Iterable[str]): Glob-like patterns.

        Returns:
            bool: True if matched, False otherwise.
        """
        path_str = path.relative_to(self.root_path).as_posix()

        for pattern in patterns:
            pattern = pattern.lstrip("/")
            if pattern.endswith("/"):
                if path.is_dir() and (
                    fnmatch.fnmatch(path.name + "/", pattern)
                    or fnmatch.fnmatch(path_str + "/", pattern)
                ):
                    return True
            elif fnmatch.fnmatch(path_str, pattern) or fnmatch.fnmatch(path.name, pattern):
                return True
        return False

    def _get_ignore_patterns(self) -> set[str]:
        """Compile ignore patterns from defaults, config, and `.gitignore`.

        Returns:
            set[str]: Combined ignore patterns.
        """
        patterns = set(DEFAULT_IGNORE_PATTERNS.get(self.language, []))
        patterns.update(self.config.ignore_patterns)

        gitignore_path = self.root_path / ".gitignore"
        if gitignore_path.exists():
            patterns.update(self._parse_gitignore(gitignore_path))

        return patterns

    def _parse_gitignore(self, gitignore_path: Path) -> list[str]:
        """Parse `.gitignore` and extract ignore patterns.

        Negations are not supported and are skipped.

        Args:
            gitignore_path (Path): Path to .gitignore file.

        Returns:
            list[str]: Extracted list of ignore patterns.
        """
        patterns = []
        with open(gitignore_path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and not line.startswith("!"):
                    patterns.append(line)
        return patterns
