"""Function extraction for selective pasting.

This module finds the top-level function and method declarations of a source
file together with the character ranges of each declaration and its body. The
ranges drive two transformations used when only some functions are selected:

- `elide` keeps the whole file but replaces unselected bodies with a placeholder.
- `extract_only` keeps nothing but the selected declarations, wrapped in the
  headers of the `impl`/`mod`/`trait`/`class` blocks they live in.

Python sources are parsed with the standard library `ast` module. Rust sources
are handled by a single linear scan over a small token stream, which is enough
to find declaration boundaries without a full parser.
"""

import ast
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, NamedTuple

from codepaste.config import Language
from codepaste.exceptions import ExtractionError

PLACEHOLDERS = {
    Language.RUST: "{ /* ... */ }",
    Language.PYTHON: "# ...",
}


@dataclass(frozen=True)
class Container:
    """A block enclosing methods, e.g. an `impl` block or a class.

    Attributes:
        header (str): Opening text as it appears in the source, indentation included.
        closer (str): Closing text (empty for Python).
        start (int): Offset of the block in the source, distinguishes equal headers.
    """

    header: str
    closer: str
    start: int


@dataclass
class FunctionInfo:
    """A function or method declaration found in a source file.

    Attributes:
        path (str): File path relative to the project root, POSIX separators.
        qualname (str): Name qualified by its enclosing blocks (`Type::method`).
        name (str): Bare function name.
        start (int): Offset where the declaration starts (attributes and decorators included).
        end (int): Offset just past the declaration.
        body (tuple[int, int] | None): Range of the elidable body, None if there is none.
        containers (tuple[Container, ...]): Enclosing blocks, outermost first.
    """

    path: str
    qualname: str
    name: str
    start: int
    end: int
    body: tuple[int, int] | None = None
    containers: tuple[Container, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        return f"{self.path}::{self.qualname}"


def extract_functions(source: str, path: str, language: Language) -> list[FunctionInfo]:
    """Extract function declarations from source text.

    Args:
        source (str): File contents.
        path (str): Relative path used in display names.
        language (Language): Source language.

    Returns:
        list[FunctionInfo]: Declarations in source order. Repeated qualified
            names (a property and its setter, `new` in two impls of one type)
            get a `#2`, `#3`, ... suffix from the second occurrence on.

    Raises:
        ExtractionError: If the source cannot be parsed.
    """
    if language == Language.PYTHON:
        functions = _extract_python(source, path)
    else:
        functions = _extract_rust(source, path)

    seen: dict[str, int] = {}
    for func in functions:
        count = seen.get(func.qualname, 0) + 1
        seen[func.qualname] = count
        if count > 1:
            func.qualname = f"{func.qualname}#{count}"
    return functions


def extract_file(file_path: Path, root: Path, language: Language) -> list[FunctionInfo]:
    """Read a file and extract its function declarations.

    Raises:
        ExtractionError: If the file cannot be read or parsed.
    """
    relative_path = file_path.relative_to(root).as_posix()
    try:
        source = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(f"Failed to read {relative_path}: {e}") from e
    return extract_functions(source, relative_path, language)


def elide(
    source: str, functions: list[FunctionInfo], keep: set[str], language: Language
) -> str:
    """Replace the body of every function not in `keep` with a placeholder.

    Args:
        source (str): Original file contents.
        functions (list[FunctionInfo]): Declarations extracted from `source`.
        keep (set[str]): Qualified names whose bodies stay intact.
        language (Language): Source language, selects the placeholder.

    Returns:
        str: Transformed source; text outside elided bodies is unchanged.
    """
    placeholder = PLACEHOLDERS[language]
    ranges = sorted(
        (func.body for func in functions if func.body and func.qualname not in keep),
        reverse=True,
    )
    result = source
    for start, end in ranges:
        result = result[:start] + placeholder + result[end:]
    return result


def extract_only(source: str, functions: list[FunctionInfo], keep: set[str]) -> str:
    """Return only the declarations listed in `keep`.

    Methods are wrapped in the headers of their enclosing blocks. Consecutive
    methods of the same block share one header.

    Args:
        source (str): Original file contents.
        functions (list[FunctionInfo]): Declarations extracted from `source`.
        keep (set[str]): Qualified names to include.

    Returns:
        str: The selected declarations, or an empty string if none are kept.
    """
    lines: list[str] = []
    last_kind = None
    open_chain: tuple[Container, ...] = ()

    kept = sorted((f for f in functions if f.qualname in keep), key=lambda f: f.start)
    for func in kept:
        chain = func.containers
        common = 0
        while (
            common < min(len(chain), len(open_chain))
            and chain[common] == open_chain[common]
        ):
            common += 1

        for container in reversed(open_chain[common:]):
            if container.closer:
                lines.append(container.closer)
                last_kind = "closer"
        for container in chain[common:]:
            if last_kind in ("function", "closer"):
                lines.append("")
            lines.append(container.header)
            last_kind = "header"

        if last_kind in ("function", "closer"):
            lines.append("")
        lines.append(source[func.start : func.end].rstrip())
        last_kind = "function"
        open_chain = chain

    for container in reversed(open_chain):
        if container.closer:
            lines.append(container.closer)

    return "\n".join(lines) + "\n" if lines else ""


class _Lines:
    """Maps line numbers and UTF-8 column offsets to string offsets."""

    def __init__(self, source: str):
        self.source = source
        self.starts = [0] + [m.end() for m in re.finditer(r"\r\n|\r|\n", source)]

    def text(self, lineno: int) -> str:
        start = self.starts[lineno - 1]
        end = self.starts[lineno] if lineno < len(self.starts) else len(self.source)
        return self.source[start:end]

    def line_start(self, lineno: int) -> int:
        return self.starts[lineno - 1]

    def first_char(self, lineno: int) -> int:
        text = self.text(lineno)
        return self.starts[lineno - 1] + len(text) - len(text.lstrip())

    def offset(self, lineno: int, col: int) -> int:
        # ast reports columns in UTF-8 bytes
        prefix = self.text(lineno).encode("utf-8")[:col]
        return self.starts[lineno - 1] + len(prefix.decode("utf-8", errors="ignore"))


def _extract_python(source: str, path: str) -> list[FunctionInfo]:
    try:
        tree = ast.parse(source)
    except (SyntaxError, ValueError) as e:
        raise ExtractionError(f"Failed to parse {path}: {e}") from e

    lines = _Lines(source)
    functions: list[FunctionInfo] = []

    def stmt_start(node: ast.stmt) -> int:
        decorators = getattr(node, "decorator_list", None)
        if decorators:
            return lines.first_char(decorators[0].lineno)
        return lines.offset(node.lineno, node.col_offset)

    def first_line(node: ast.stmt) -> int:
        decorators = getattr(node, "decorator_list", None)
        return decorators[0].lineno if decorators else node.lineno

    def class_header(node: ast.ClassDef) -> str:
        header = []
        for lineno in range(first_line(node), max(first_line(node.body[0]), node.lineno + 1)):
            text = lines.text(lineno).rstrip("\r\n")
            header.append(text)
            if lineno >= node.lineno and text.rstrip().endswith(":"):
                break
        return "\n".join(header)

    def visit(body: list[ast.stmt], prefix: list[str], containers: tuple[Container, ...]):
        for node in body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                statements = node.body
                if ast.get_docstring(node, clean=False) is not None:
                    statements = statements[1:]
                end = lines.offset(node.end_lineno, node.end_col_offset)
                functions.append(
                    FunctionInfo(
                        path=path,
                        qualname=".".join(prefix + [node.name]),
                        name=node.name,
                        start=lines.line_start(first_line(node)),
                        end=end,
                        body=(stmt_start(statements[0]), end) if statements else None,
                        containers=containers,
                    )
                )
            elif isinstance(node, ast.ClassDef):
                container = Container(
                    header=class_header(node),
                    closer="",
                    start=lines.line_start(first_line(node)),
                )
                visit(node.body, prefix + [node.name], containers + (container,))

    visit(tree.body, [], ())
    return functions


class _Token(NamedTuple):
    kind: str
    text: str
    start: int
    end: int


_IDENT = re.compile(r"(?:r#)?[^\W\d]\w*")
_NUMBER = re.compile(r"\d[\w]*(?:\.\d[\w]*)?")
_RAW_STRING = re.compile(r"b?r(#*)\"")
_STRING_PREFIX = re.compile(r"b?\"")
_BYTE_CHAR = re.compile(r"b'")


def _tokenize_rust(source: str) -> Iterator[_Token]:
    """Yield identifiers, punctuation, literals, lifetimes and comments."""
    i = 0
    n = len(source)
    while i < n:
        c = source[i]
        if c.isspace():
            i += 1
            continue

        if source.startswith("//", i):
            end = source.find("\n", i)
            end = n if end < 0 else end
            yield _Token("comment", source[i:end], i, end)
            i = end
            continue

        if source.startswith("/*", i):
            depth = 0
            j = i
            while j < n:
                if source.startswith("/*", j):
                    depth += 1
                    j += 2
                elif source.startswith("*/", j):
                    depth -= 1
                    j += 2
                    if depth == 0:
                        break
                else:
                    j += 1
            yield _Token("comment", source[i:j], i, j)
            i = j
            continue

        match = _RAW_STRING.match(source, i)
        if match:
            terminator = '"' + match.group(1)
            end = source.find(terminator, match.end())
            end = n if end < 0 else end + len(terminator)
            yield _Token("literal", source[i:end], i, end)
            i = end
            continue

        match = _STRING_PREFIX.match(source, i)
        if match:
            j = match.end()
            while j < n and source[j] != '"':
                j += 2 if source[j] == "\\" else 1
            end = min(j + 1, n)
            yield _Token("literal", source[i:end], i, end)
            i = end
            continue

        if c == "'" or _BYTE_CHAR.match(source, i):
            quote = i if c == "'" else i + 1
            if source.startswith("\\", quote + 1):
                j = quote + 2
                while j < n and source[j] != "'":
                    j += 2 if source[j] == "\\" else 1
                end = min(j + 1, n)
                yield _Token("literal", source[i:end], i, end)
                i = end
                continue
            if quote + 2 < n and source[quote + 2] == "'":
                yield _Token("literal", source[i : quote + 3], i, quote + 3)
                i = quote + 3
                continue
            match = _IDENT.match(source, quote + 1)
            end = match.end() if match else quote + 1
            yield _Token("lifetime", source[i:end], i, end)
            i = end
            continue

        match = _IDENT.match(source, i)
        if match:
            yield _Token("ident", match.group(), i, match.end())
            i = match.end()
            continue

        match = _NUMBER.match(source, i)
        if match:
            yield _Token("literal", match.group(), i, match.end())
            i = match.end()
            continue

        yield _Token("punct", c, i, i + 1)
        i += 1


@dataclass
class _Scope:
    kind: str
    qualifier: str | None = None
    container: Container | None = None


_TYPE_SKIP = {"dyn", "mut", "const", "impl", "unsafe"}


def _path_name(tokens: list[_Token]) -> str:
    """Return the last path segment of a type or trait, ignoring generic arguments."""
    name = None
    for tok in tokens:
        if tok.text == "<" and name:
            break
        if tok.kind == "ident" and tok.text not in _TYPE_SKIP:
            name = tok.text
    return name or "Unknown"


def _skip_generics(tokens: list[_Token], i: int) -> int:
    """Return the index just past the `<...>` group starting at `i`."""
    depth = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.text == "<":
            depth += 1
        elif tok.text == ">" and not (
            i > 0 and tokens[i - 1].text == "-" and tokens[i - 1].end == tok.start
        ):
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return i


def _impl_qualifier(header: list[_Token]) -> str:
    """Name an impl block `Type` or `Type::Trait` from the tokens after `impl`."""
    i = _skip_generics(header, 0) if header and header[0].text == "<" else 0
    header = header[i:]
    for j, tok in enumerate(header):
        if tok.text == "where":
            header = header[:j]
            break

    depth = 0
    for j, tok in enumerate(header):
        if tok.text == "<":
            depth += 1
        elif tok.text == ">" and not (j > 0 and header[j - 1].text == "-"):
            depth -= 1
        elif tok.text == "for" and depth == 0:
            if j + 1 < len(header) and header[j + 1].text == "<":
                continue
            return f"{_path_name(header[j + 1:])}::{_path_name(header[:j])}"
    return _path_name(header)


def _find_block_or_end(tokens: list[_Token], i: int) -> int:
    """Return the index of the first `{` or `;` outside parentheses and brackets."""
    depth = 0
    while i < len(tokens):
        text = tokens[i].text
        if tokens[i].kind == "punct":
            if text in "([":
                depth += 1
            elif text in ")]":
                depth -= 1
            elif depth <= 0 and text in "{;":
                return i
        i += 1
    return i


def _matching_brace(tokens: list[_Token], i: int) -> int:
    depth = 0
    while i < len(tokens):
        if tokens[i].kind == "punct":
            if tokens[i].text == "{":
                depth += 1
            elif tokens[i].text == "}":
                depth -= 1
                if depth == 0:
                    return i
        i += 1
    return len(tokens) - 1


def _line_start(source: str, pos: int) -> int:
    """Move `pos` back to the start of its line if only indentation precedes it."""
    start = source.rfind("\n", 0, pos) + 1
    return start if not source[start:pos].strip() else pos


def _extract_rust(source: str, path: str) -> list[FunctionInfo]:
    tokens = list(_tokenize_rust(source))
    functions: list[FunctionInfo] = []
    stack = [_Scope("file")]
    item_start = None
    prev_end = None
    i = 0

    while i < len(tokens):
        tok = tokens[i]
        scope = stack[-1]
        item_level = scope.kind != "block"

        # a comment trailing the previous item on its line belongs to that item
        trailing = (
            tok.kind == "comment"
            and prev_end is not None
            and "\n" not in source[prev_end : tok.start]
        )
        if item_level and item_start is None and not trailing:
            item_start = tok.start
        if tok.kind == "comment":
            i += 1
            continue

        if tok.kind == "punct" and tok.text in "{};":
            if tok.text == "{":
                stack.append(_Scope("block"))
            elif tok.text == "}" and len(stack) > 1:
                stack.pop()
            if stack[-1].kind != "block":
                item_start = None
                prev_end = tok.end
            i += 1
            continue

        if not item_level or tok.kind != "ident":
            i += 1
            continue

        containers = tuple(s.container for s in stack if s.container)
        prefix = [s.qualifier for s in stack if s.qualifier]

        if tok.text == "fn" and i + 1 < len(tokens) and tokens[i + 1].kind == "ident":
            name = tokens[i + 1].text
            j = _find_block_or_end(tokens, i + 2)
            start = _line_start(source, item_start)
            if j < len(tokens) and tokens[j].text == "{":
                k = _matching_brace(tokens, j)
                body = (tokens[j].start, tokens[k].end)
                end = tokens[k].end
            else:
                k = min(j, len(tokens) - 1)
                body = None
                end = tokens[k].end
            functions.append(
                FunctionInfo(
                    path=path,
                    qualname="::".join(prefix + [name]),
                    name=name,
                    start=start,
                    end=end,
                    body=body,
                    containers=containers,
                )
            )
            item_start = None
            prev_end = end
            i = k + 1
            continue

        if tok.text in ("impl", "trait", "mod"):
            j = _find_block_or_end(tokens, i + 1)
            if j >= len(tokens) or tokens[j].text != "{":
                i = j
                continue
            if tok.text == "impl":
                qualifier = _impl_qualifier(tokens[i + 1 : j])
            else:
                qualifier = tokens[i + 1].text if i + 1 < j else "Unknown"
            start = _line_start(source, item_start)
            line_begin = source.rfind("\n", 0, item_start) + 1
            line = source[line_begin:item_start]
            indent = line[: len(line) - len(line.lstrip())]
            header = source[start : tokens[j].start].rstrip() + " {"
            container = Container(
                header=header if start == line_begin else indent + header,
                closer=indent + "}",
                start=start,
            )
            stack.append(_Scope(tok.text, qualifier, container))
            item_start = None
            prev_end = tokens[j].end
            i = j + 1
            continue

        i += 1

    return functions
