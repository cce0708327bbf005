#!/usr/bin/env python3
"""
Repo Explorer - Repository Tree, Contents and Statistics Reports

Clone a repository (or point at a local directory) and walk it to produce
human-readable reports: a box-drawing tree view, a flattened dump of file
contents, and a summary with aggregate statistics.

Architecture:
    CLI Args → Options → Clone → Walk (filter, order, depth) →
    Tree / Contents / Stats → Report Files
"""

from __future__ import annotations

import argparse
import logging
import os
import re
import stat as statmod
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import (
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    NamedTuple,
    Optional,
    Set,
    TextIO,
    Tuple,
    Union,
)

import repo_clone

# =============================================================================
# VERSION MANAGEMENT
# =============================================================================

__version__ = "1.0.0"


def get_version() -> str:
    """Get version from package metadata or fallback to hardcoded."""
    try:
        from importlib.metadata import version
        return version("repo-explorer")
    except Exception:
        return __version__


# =============================================================================
# OPTIONAL DEPENDENCIES
# =============================================================================

try:
    import pyperclip
    HAS_PYPERCLIP = True
except ImportError:
    HAS_PYPERCLIP = False

try:
    import gitignore_parser
    HAS_GITIGNORE_PARSER = True
except ImportError:
    HAS_GITIGNORE_PARSER = False


# =============================================================================
# CONSTANTS
# =============================================================================

class Defaults:
    """Default configuration values."""
    MAX_FILE_SIZE = "1M"
    MAX_FILE_SIZE_BYTES = 1024 * 1024
    MAX_DEPTH = -1
    SEPARATOR = "\n" + "-" * 80 + "\n"
    DEPTH_CEILING = 512
    LARGEST_RETENTION = 20
    LARGEST_DISPLAY = 10
    TREE_FILE = "./repo-tree.txt"
    CONTENTS_FILE = "./repo-contents.txt"
    SUMMARY_FILE = "./repo-summary.txt"
    CLONE_ROOT = "Repository"


class DefaultExcludes:
    """Names excluded by default, per report."""
    TREE: FrozenSet[str] = frozenset()
    CONTENTS: FrozenSet[str] = frozenset({"node_modules", ".git", "dist", "build"})
    SUMMARY: FrozenSet[str] = frozenset({"node_modules", ".git"})


NO_EXTENSION = "(no extension)"
SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")
RULE_WIDTH = 80

# Tree display glyphs
GLYPH_CHILD = "├── "
GLYPH_LAST = "└── "
GLYPH_PIPE = "│   "
GLYPH_SPACE = "    "

# Undecodable file names (surrogate escapes) are written as \udcXX text
REPORT_ERRORS = "backslashreplace"


# =============================================================================
# ERRORS
# =============================================================================

class ErrorKind(Enum):
    """Failure categories met while walking or writing reports."""
    INVALID_INPUT = auto()     # Missing or non-path argument
    NOT_FOUND = auto()
    NOT_A_DIRECTORY = auto()
    READ_ERROR = auto()        # Directory listing or file content
    STAT_ERROR = auto()
    WRITE_ERROR = auto()


class WalkError(Exception):
    """An error tied to one path, tagged with its ErrorKind."""

    def __init__(self, kind: ErrorKind, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.path = path

    @classmethod
    def from_os_error(cls, kind: ErrorKind, exc: OSError, path: Path) -> WalkError:
        return cls(kind, str(exc), path)


# =============================================================================
# DATA MODEL
# =============================================================================

@dataclass(frozen=True)
class WalkOptions:
    """Immutable walk configuration, one per invocation."""
    max_depth: int = Defaults.MAX_DEPTH
    exclude: FrozenSet[str] = frozenset()
    show_hidden: bool = False
    show_size: bool = False
    extensions: Optional[FrozenSet[str]] = None
    max_file_size: Optional[int] = Defaults.MAX_FILE_SIZE_BYTES
    separator: str = Defaults.SEPARATOR
    sort_contents: bool = False
    use_gitignore: bool = False

    def may_descend(self, depth: int) -> bool:
        """Whether a directory listed at `depth` may have its own children listed."""
        return self.max_depth < 0 or depth + 1 <= self.max_depth


@dataclass
class WalkResult:
    """Outcome of a walk. Non-fatal errors flip `success` but never stop the walk."""
    success: bool = True
    error: Optional[WalkError] = None
    errors: List[WalkError] = field(default_factory=list)

    def record(self, error: WalkError) -> None:
        self.success = False
        self.error = error
        self.errors.append(error)

    @classmethod
    def failed(cls, error: WalkError) -> WalkResult:
        return cls(success=False, error=error, errors=[error])


@dataclass
class ContentCounts:
    """Processed/skipped tally for a content export."""
    processed: int = 0
    skipped: int = 0

    def __add__(self, other: ContentCounts) -> ContentCounts:
        return ContentCounts(
            processed=self.processed + other.processed,
            skipped=self.skipped + other.skipped,
        )

    @property
    def total(self) -> int:
        return self.processed + self.skipped


@dataclass
class FileTypeStats:
    """Count and byte total for one extension."""
    count: int = 0
    total_size: int = 0


class FileSize(NamedTuple):
    path: Path
    size: int


class LargestFiles:
    """Bounded list of the largest files seen during a walk.

    Eviction rule: once more than `retention` candidates are held, the list
    is sorted by size (largest first) and truncated back to `retention`.
    `top(n)` is exact for any n <= retention.
    """

    def __init__(self, retention: int = Defaults.LARGEST_RETENTION):
        if retention < 1:
            raise ValueError(f"retention must be positive, got {retention}")
        self.retention = retention
        self._items: List[FileSize] = []

    def add(self, path: Path, size: int) -> None:
        self._items.append(FileSize(path, size))
        if len(self._items) > self.retention:
            self._items.sort(key=lambda item: item.size, reverse=True)
            del self._items[self.retention:]

    def top(self, count: int = Defaults.LARGEST_DISPLAY) -> List[FileSize]:
        return sorted(self._items, key=lambda item: item.size, reverse=True)[:count]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[FileSize]:
        return iter(self._items)


@dataclass
class DirectoryStats:
    """Aggregate statistics for one walk."""
    total_files: int = 0
    total_directories: int = 0
    total_size: int = 0
    file_types: Dict[str, FileTypeStats] = field(default_factory=dict)
    largest_files: LargestFiles = field(default_factory=LargestFiles)
    errors: List[WalkError] = field(default_factory=list)

    def add_directory(self) -> None:
        self.total_directories += 1

    def add_file(self, path: Path, size: int) -> None:
        self.total_files += 1
        self.total_size += size

        ext = path.suffix.lower() or NO_EXTENSION
        bucket = self.file_types.setdefault(ext, FileTypeStats())
        bucket.count += 1
        bucket.total_size += size

        self.largest_files.add(path, size)

    def sorted_file_types(self) -> List[Tuple[str, FileTypeStats]]:
        """File types by descending count."""
        return sorted(self.file_types.items(), key=lambda item: item[1].count, reverse=True)


@dataclass
class ExportResult:
    """Outcome of a report written to disk."""
    success: bool
    file_path: Optional[Path] = None
    error: Optional[WalkError] = None
    message: str = ""
    file_count: Optional[ContentCounts] = None
    stats: Optional[DirectoryStats] = None
    errors: List[WalkError] = field(default_factory=list)

    @classmethod
    def failed(cls, error: WalkError, action: str) -> ExportResult:
        message = f"Failed to {action}: {error}"
        logging.debug(message)
        return cls(success=False, error=error, message=message)


# =============================================================================
# HELPERS
# =============================================================================

def format_size(num_bytes: int) -> str:
    """Human-readable size: powers of 1024, two decimals, '0 B' for zero."""
    if num_bytes <= 0:
        return f"{num_bytes} B" if num_bytes < 0 else "0 B"

    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {SIZE_UNITS[unit]}"


def validate_directory(directory: Union[str, os.PathLike, None]) -> Path:
    """Resolve `directory`, raising WalkError unless it is an existing directory."""
    if not directory or not isinstance(directory, (str, os.PathLike)):
        raise WalkError(ErrorKind.INVALID_INPUT, "Invalid directory path provided")

    resolved = Path(directory).resolve()
    if not resolved.exists():
        raise WalkError(ErrorKind.NOT_FOUND, f"Directory does not exist: {resolved}", resolved)
    if not resolved.is_dir():
        raise WalkError(ErrorKind.NOT_A_DIRECTORY, f"Path is not a directory: {resolved}", resolved)
    return resolved


def read_text_file(path: Path) -> str:
    """Read a file as UTF-8 text. Raises ValueError for binary or undecodable content."""
    with open(path, "rb") as f:
        data = f.read()
    if b"\x00" in data[:8192]:
        raise ValueError("Binary file")
    return data.decode("utf-8")


def normalize_extensions(values: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    """Lowercase, dot-prefixed extensions. Accepts comma separated entries."""
    extensions: Set[str] = set()
    for value in values or []:
        for ext in value.split(","):
            ext = ext.strip().lower()
            if ext:
                extensions.add(ext if ext.startswith(".") else f".{ext}")
    return frozenset(extensions) or None


def _display_name(root: Path) -> str:
    # "/" renders as "/" rather than "//"
    return root.name or str(root).rstrip("\\/")


def _console(line: str) -> None:
    encoding = getattr(sys.stdout, "encoding", None) or "utf-8"
    print(line.encode(encoding, REPORT_ERRORS).decode(encoding))


def _list_dir(directory: Path) -> List[str]:
    return os.listdir(directory)


def _stat(path: Path) -> os.stat_result:
    return os.stat(path)


# =============================================================================
# FILTER RULES (Strategy Pattern)
# =============================================================================

def wildcard_to_regex(pattern: str) -> re.Pattern[str]:
    """Anchored regex for a '*' wildcard pattern; everything else is literal."""
    return re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$")


class FilterRule(ABC):
    """Abstract base for entry visibility rules."""

    @abstractmethod
    def check(self, name: str, path: Optional[Path]) -> Tuple[bool, str]:
        """Check if entry passes this rule. Returns (passes, reason)."""
        pass


class HiddenRule(FilterRule):
    """Hide dot-entries unless asked to show them."""

    def __init__(self, show_hidden: bool):
        self.show_hidden = show_hidden

    def check(self, name: str, path: Optional[Path]) -> Tuple[bool, str]:
        if not self.show_hidden and name.startswith("."):
            return False, "Hidden"
        return True, ""


class ExcludeRule(FilterRule):
    """Exact names, plus '*' wildcard patterns when enabled."""

    def __init__(self, patterns: Iterable[str], wildcards: bool = True):
        self.names: Set[str] = set()
        self.wildcards: List[Tuple[str, re.Pattern[str]]] = []
        for pattern in patterns:
            if wildcards and "*" in pattern:
                self.wildcards.append((pattern, wildcard_to_regex(pattern)))
            else:
                self.names.add(pattern)

    def check(self, name: str, path: Optional[Path]) -> Tuple[bool, str]:
        if name in self.names:
            return False, f"Excluded: {name}"
        for pattern, regex in self.wildcards:
            if regex.fullmatch(name):
                return False, f"Matches exclude: {pattern}"
        return True, ""


class GitignoreRule(FilterRule):
    """Apply the walked root's .gitignore patterns."""

    def __init__(self, matcher: Callable[[Path], bool]):
        self.matcher = matcher

    def check(self, name: str, path: Optional[Path]) -> Tuple[bool, str]:
        if path is not None and self.matcher(path):
            return False, "Matched .gitignore"
        return True, ""


def load_gitignore(root: Path) -> Optional[Callable[[Path], bool]]:
    """Load .gitignore matcher if available."""
    if not HAS_GITIGNORE_PARSER:
        logging.warning("gitignore-parser not installed, .gitignore is not applied")
        return None

    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return None

    try:
        return gitignore_parser.parse_gitignore(gitignore)
    except Exception as e:
        logging.warning(f"Could not parse .gitignore: {e}")
        return None


class PathFilter:
    """Composite visibility filter for directory entries."""

    def __init__(
        self,
        options: WalkOptions,
        wildcards: bool = True,
        gitignore_matcher: Optional[Callable[[Path], bool]] = None,
    ):
        self.rules: List[FilterRule] = [
            HiddenRule(options.show_hidden),
            ExcludeRule(options.exclude, wildcards),
        ]
        if gitignore_matcher is not None:
            self.rules.append(GitignoreRule(gitignore_matcher))

    @classmethod
    def for_root(cls, options: WalkOptions, root: Path, wildcards: bool = True) -> PathFilter:
        matcher = load_gitignore(root) if options.use_gitignore else None
        return cls(options, wildcards, matcher)

    def is_visible(self, name: str, path: Optional[Path] = None) -> bool:
        for rule in self.rules:
            passes, reason = rule.check(name, path)
            if not passes:
                logging.debug(f"Filtered {path or name}: {reason}")
                return False
        return True


# =============================================================================
# ORDERING
# =============================================================================

class EntryOrderer:
    """Directories first, then case-aware lexicographic order."""

    @staticmethod
    def is_directory(path: Path) -> bool:
        # Entries that cannot be stat'ed sort with the files
        try:
            return statmod.S_ISDIR(_stat(path).st_mode)
        except OSError:
            return False

    @classmethod
    def order(cls, directory: Path, names: Iterable[str]) -> List[str]:
        def key(name: str) -> Tuple[bool, str, str]:
            return (not cls.is_directory(directory / name), name.casefold(), name.swapcase())

        return sorted(names, key=key)


# =============================================================================
# WALKER
# =============================================================================

class EventKind(Enum):
    """What a walk event reports."""
    ENTRY = auto()          # Visible entry with stat result
    FILTERED = auto()       # Hidden or excluded entry
    STAT_ERROR = auto()
    LIST_ERROR = auto()     # Directory could not be listed
    EMPTY = auto()          # Directory without visible entries


@dataclass(frozen=True)
class WalkEvent:
    """One step of a walk.

    `lineage` holds the "was last sibling" flag of every directory between
    the root and this entry; tree prefixes are derived from it. For
    LIST_ERROR and EMPTY events `path` is the directory itself and
    `lineage` is the one its children would carry.
    """
    kind: EventKind
    path: Path
    depth: int
    lineage: Tuple[bool, ...] = ()
    is_last: bool = False
    stat: Optional[os.stat_result] = None
    error: Optional[WalkError] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_dir(self) -> bool:
        return self.stat is not None and statmod.S_ISDIR(self.stat.st_mode)

    @property
    def prefix(self) -> str:
        return "".join(GLYPH_SPACE if last else GLYPH_PIPE for last in self.lineage)


@dataclass(frozen=True)
class _Frame:
    path: Path
    depth: int
    lineage: Tuple[bool, ...]
    is_last: bool
    listing: bool


def walk_directory(
    root: Path,
    options: WalkOptions,
    path_filter: PathFilter,
    ordered: bool = True,
) -> Iterator[WalkEvent]:
    """Depth-first walk of a validated root, driven by an explicit stack.

    Events come in pre-order: a directory's ENTRY precedes the events of its
    children. Children are listed only while `options.may_descend` allows it
    and below Defaults.DEPTH_CEILING. A directory already entered (same
    device and inode, e.g. through a symlink loop) is not entered again.
    """
    seen: Set[Tuple[int, int]] = set()
    try:
        root_stat = _stat(root)
        seen.add((root_stat.st_dev, root_stat.st_ino))
    except OSError:
        pass

    stack: List[_Frame] = [_Frame(root, 0, (), True, listing=True)]
    while stack:
        frame = stack.pop()
        if frame.listing:
            yield from _expand(frame, path_filter, ordered, stack)
            continue

        try:
            st = _stat(frame.path)
        except OSError as exc:
            yield WalkEvent(
                EventKind.STAT_ERROR, frame.path, frame.depth, frame.lineage, frame.is_last,
                error=WalkError.from_os_error(ErrorKind.STAT_ERROR, exc, frame.path),
            )
            continue

        event = WalkEvent(EventKind.ENTRY, frame.path, frame.depth, frame.lineage, frame.is_last, stat=st)
        yield event

        if not event.is_dir or not options.may_descend(frame.depth):
            continue
        if frame.depth + 1 > Defaults.DEPTH_CEILING:
            logging.warning(f"Depth ceiling {Defaults.DEPTH_CEILING} reached at {frame.path}")
            continue
        identity = (st.st_dev, st.st_ino)
        if identity in seen:
            logging.debug(f"Skipping already visited directory {frame.path}")
            continue
        seen.add(identity)
        stack.append(_Frame(
            frame.path, frame.depth + 1, frame.lineage + (frame.is_last,), frame.is_last, listing=True,
        ))


def _expand(
    frame: _Frame,
    path_filter: PathFilter,
    ordered: bool,
    stack: List[_Frame],
) -> Iterator[WalkEvent]:
    """List one directory and push its visible children onto the stack."""
    try:
        names = _list_dir(frame.path)
    except OSError as exc:
        yield WalkEvent(
            EventKind.LIST_ERROR, frame.path, frame.depth, frame.lineage,
            error=WalkError.from_os_error(ErrorKind.READ_ERROR, exc, frame.path),
        )
        return

    visible: List[str] = []
    for name in names:
        child = frame.path / name
        if path_filter.is_visible(name, child):
            visible.append(name)
        else:
            yield WalkEvent(EventKind.FILTERED, child, frame.depth, frame.lineage)

    if ordered:
        visible = EntryOrderer.order(frame.path, visible)

    if not visible:
        yield WalkEvent(EventKind.EMPTY, frame.path, frame.depth, frame.lineage)
        return

    last = len(visible) - 1
    for index in range(last, -1, -1):
        stack.append(_Frame(frame.path / visible[index], frame.depth, frame.lineage, index == last, listing=False))


# =============================================================================
# TREE RENDERER
# =============================================================================

class TreeRenderer:
    """Renders a directory as an indented, box-drawing tree, one line per entry."""

    def __init__(self, options: WalkOptions, sink: Optional[Callable[[str], None]] = None):
        self.options = options
        self.sink = sink or _console

    def render(self, directory: Union[str, os.PathLike]) -> WalkResult:
        try:
            root = validate_directory(directory)
        except WalkError as e:
            logging.error(f"Error: {e}")
            return WalkResult.failed(e)

        result = WalkResult()
        self.sink(f"{_display_name(root)}/")

        path_filter = PathFilter.for_root(self.options, root)
        for event in walk_directory(root, self.options, path_filter, ordered=True):
            if event.error is not None:
                result.record(event.error)
            line = self._format(event)
            if line is not None:
                self.sink(line)
        return result

    def _format(self, event: WalkEvent) -> Optional[str]:
        prefix = event.prefix
        if event.kind is EventKind.FILTERED:
            return None
        if event.kind is EventKind.LIST_ERROR:
            return f"{prefix}{GLYPH_CHILD}[Error reading directory: {event.error}]"
        if event.kind is EventKind.EMPTY:
            return f"{prefix}{GLYPH_LAST}[empty]"

        connector = GLYPH_LAST if event.is_last else GLYPH_CHILD
        if event.kind is EventKind.STAT_ERROR:
            return f"{prefix}{connector}{event.name} [Error: {event.error}]"

        if event.is_dir:
            return f"{prefix}{connector}{event.name}/"
        size = f" ({format_size(event.stat.st_size)})" if self.options.show_size else ""
        return f"{prefix}{connector}{event.name}{size}"


# =============================================================================
# CONTENT COLLECTOR
# =============================================================================

class ContentCollector:
    """Appends every qualifying file's path and content to an open text sink.

    Records are written as the walk reaches them, so only one file's content
    is held in memory at a time. Paths are written relative to
    `relative_to`, normally the directory holding the output file.
    """

    def __init__(
        self,
        options: WalkOptions,
        out: TextIO,
        relative_to: Path,
        output_path: Optional[Path] = None,
    ):
        self.options = options
        self.out = out
        self.relative_to = relative_to
        self.output_path = output_path
        self.extensions = {e.lower() for e in options.extensions} if options.extensions else None
        self.errors: List[WalkError] = []

    def collect(self, root: Path) -> ContentCounts:
        counts = ContentCounts()
        path_filter = PathFilter.for_root(self.options, root)
        ordered = self.options.sort_contents
        for event in walk_directory(root, self.options, path_filter, ordered=ordered):
            counts += self._handle(event)
        return counts

    def _handle(self, event: WalkEvent) -> ContentCounts:
        if event.kind is EventKind.FILTERED:
            return ContentCounts(skipped=1)
        if event.kind is EventKind.EMPTY:
            return ContentCounts()
        if event.kind is EventKind.LIST_ERROR:
            self.errors.append(event.error)
            self._write(f"Directory: {event.path}\n[ERROR: {event.error}]\n")
            return ContentCounts()

        relative = self._relative(event.path)
        if event.kind is EventKind.STAT_ERROR:
            self.errors.append(event.error)
            self._write(f"Path: {relative}\n[ERROR: {event.error}]\n")
            return ContentCounts(skipped=1)

        if event.is_dir:
            return ContentCounts()
        return self._handle_file(event.path, relative, event.stat.st_size)

    def _handle_file(self, path: Path, relative: str, size: int) -> ContentCounts:
        if self.output_path is not None and path == self.output_path:
            logging.debug(f"Skipping output file {path}")
            return ContentCounts(skipped=1)

        limit = self.options.max_file_size
        if limit is not None and size > limit:
            self._write(f"File: {relative}\n[FILE TOO LARGE: {format_size(size)}]\n")
            return ContentCounts(skipped=1)

        if self.extensions and path.suffix.lower() not in self.extensions:
            logging.debug(f"Skipping {relative}: extension not selected")
            return ContentCounts(skipped=1)

        try:
            content = read_text_file(path)
        except (OSError, ValueError) as e:
            logging.debug(f"Could not read {path}: {e}")
            self.errors.append(WalkError(ErrorKind.READ_ERROR, str(e), path))
            self._write(f"File: {relative}\n[UNABLE TO READ: {e}]\n")
            return ContentCounts(skipped=1)

        self._write(f"File: {relative}\n\n{content}\n")
        return ContentCounts(processed=1)

    def _relative(self, path: Path) -> str:
        try:
            return os.path.relpath(path, self.relative_to)
        except ValueError:
            return str(path)

    def _write(self, record: str) -> None:
        self.out.write(record + self.options.separator)


# =============================================================================
# STATS AGGREGATOR
# =============================================================================

class StatsAggregator:
    """Counts files, directories, bytes, extensions and the largest files.

    Exclusion here matches exact names only. Read and stat failures never
    abort the aggregation; they are kept in `DirectoryStats.errors`.
    """

    def __init__(self, options: WalkOptions):
        self.options = options

    def aggregate(self, directory: Union[str, os.PathLike]) -> DirectoryStats:
        stats = DirectoryStats()
        try:
            root = validate_directory(directory)
        except WalkError as e:
            logging.warning(f"Cannot collect statistics: {e}")
            stats.errors.append(e)
            return stats

        path_filter = PathFilter.for_root(self.options, root, wildcards=False)
        for event in walk_directory(root, self.options, path_filter, ordered=False):
            if event.error is not None:
                logging.debug(f"Ignoring {event.error.kind.name} at {event.path}: {event.error}")
                stats.errors.append(event.error)
            elif event.kind is EventKind.ENTRY:
                if event.is_dir:
                    stats.add_directory()
                else:
                    stats.add_file(event.path, event.stat.st_size)
        return stats


# =============================================================================
# SUMMARY COMPOSER
# =============================================================================

class SummaryComposer:
    """Combines the tree (without sizes) and the statistics into one report."""

    def __init__(self, options: WalkOptions, include_stats: bool = True):
        self.options = options
        self.include_stats = include_stats

    def compose(
        self,
        directory: Union[str, os.PathLike],
        output_path: Union[str, os.PathLike] = Defaults.SUMMARY_FILE,
    ) -> ExportResult:
        try:
            root = validate_directory(directory)
        except WalkError as e:
            return ExportResult.failed(e, "generate directory summary")

        lines = [
            f"Directory Summary: {root}",
            f"Generated on: {datetime.now():%Y-%m-%d %H:%M:%S}",
            "=" * RULE_WIDTH,
            "",
            "Directory Structure:",
        ]
        tree = TreeRenderer(replace(self.options, show_size=False), sink=lines.append).render(root)

        stats = None
        if self.include_stats:
            stats = StatsAggregator(self.options).aggregate(root)
            lines.extend(self._format_stats(stats))

        target = Path(output_path).resolve()
        try:
            target.write_text("\n".join(lines), encoding="utf-8", errors=REPORT_ERRORS)
        except OSError as exc:
            error = WalkError.from_os_error(ErrorKind.WRITE_ERROR, exc, target)
            return ExportResult.failed(error, "generate directory summary")

        return ExportResult(
            success=True,
            file_path=target,
            message=f"Directory summary generated successfully to: {target}",
            stats=stats,
            errors=tree.errors,
        )

    def _format_stats(self, stats: DirectoryStats) -> List[str]:
        lines = [
            "",
            "=" * RULE_WIDTH,
            "",
            "Directory Statistics:",
            f"- Total Files: {stats.total_files}",
            f"- Total Directories: {stats.total_directories}",
            f"- Total Size: {format_size(stats.total_size)}",
            "",
            "File Types:",
        ]
        for ext, data in stats.sorted_file_types():
            lines.append(f"- {ext}: {data.count} files ({format_size(data.total_size)})")

        lines.extend(["", "Largest Files:"])
        for item in stats.largest_files.top(Defaults.LARGEST_DISPLAY):
            lines.append(f"- {item.path} ({format_size(item.size)})")
        return lines


# =============================================================================
# REPORT OPERATIONS
# =============================================================================

def print_tree(
    directory: Union[str, os.PathLike],
    options: Optional[WalkOptions] = None,
    sink: Optional[Callable[[str], None]] = None,
) -> WalkResult:
    """Print a directory tree to the console (or `sink`)."""
    return TreeRenderer(options or WalkOptions(), sink).render(directory)


def simple_tree_print(
    directory: Union[str, os.PathLike],
    sink: Optional[Callable[[str], None]] = None,
) -> WalkResult:
    """Unlimited depth, hidden entries off, file sizes on."""
    return print_tree(directory, WalkOptions(show_size=True), sink)


def export_tree(
    directory: Union[str, os.PathLike],
    output_path: Union[str, os.PathLike] = Defaults.TREE_FILE,
    options: Optional[WalkOptions] = None,
) -> ExportResult:
    """Write the rendered tree to a text file."""
    try:
        root = validate_directory(directory)
    except WalkError as e:
        return ExportResult.failed(e, "export tree")

    lines: List[str] = []
    result = TreeRenderer(options or WalkOptions(), sink=lines.append).render(root)

    target = Path(output_path).resolve()
    try:
        target.write_text("\n".join(lines), encoding="utf-8", errors=REPORT_ERRORS)
    except OSError as exc:
        return ExportResult.failed(WalkError.from_os_error(ErrorKind.WRITE_ERROR, exc, target), "export tree")

    return ExportResult(
        success=True,
        file_path=target,
        error=result.error,
        message=f"Tree structure exported successfully to: {target}",
        errors=result.errors,
    )


def export_file_contents(
    directory: Union[str, os.PathLike],
    output_path: Union[str, os.PathLike] = Defaults.CONTENTS_FILE,
    options: Optional[WalkOptions] = None,
) -> ExportResult:
    """Dump every qualifying file of `directory` into one text file."""
    options = options or WalkOptions(exclude=DefaultExcludes.CONTENTS)
    try:
        root = validate_directory(directory)
    except WalkError as e:
        return ExportResult.failed(e, "export file contents")

    target = Path(output_path).resolve()
    try:
        with open(target, "w", encoding="utf-8", errors=REPORT_ERRORS) as out:
            out.write(f"File contents from: {root}\n{options.separator}")
            collector = ContentCollector(options, out, relative_to=target.parent, output_path=target)
            counts = collector.collect(root)
            out.write(
                f"{options.separator}End of file contents\n"
                f"Total files processed: {counts.processed}\n"
                f"Files skipped: {counts.skipped}\n"
            )
    except OSError as exc:
        error = WalkError.from_os_error(ErrorKind.WRITE_ERROR, exc, target)
        return ExportResult.failed(error, "export file contents")

    logging.info(f"Files processed: {counts.processed}, Files skipped: {counts.skipped}")
    return ExportResult(
        success=True,
        file_path=target,
        message=f"File contents exported successfully to: {target}",
        file_count=counts,
        errors=collector.errors,
    )


def generate_directory_summary(
    directory: Union[str, os.PathLike],
    output_path: Union[str, os.PathLike] = Defaults.SUMMARY_FILE,
    options: Optional[WalkOptions] = None,
    include_stats: bool = True,
) -> ExportResult:
    """Write tree plus statistics to a summary file."""
    options = options or WalkOptions(exclude=DefaultExcludes.SUMMARY)
    return SummaryComposer(options, include_stats).compose(directory, output_path)


# =============================================================================
# CONFIGURATION BUILDER
# =============================================================================

class OptionsBuilder:
    """Builds WalkOptions from CLI arguments."""

    @staticmethod
    def from_args(
        args: argparse.Namespace,
        base_exclude: FrozenSet[str] = DefaultExcludes.TREE,
    ) -> WalkOptions:
        """Create options from parsed arguments, adding `base_exclude`."""
        return WalkOptions(
            max_depth=args.max_depth,
            exclude=frozenset(base_exclude) | frozenset(args.exclude or []),
            show_hidden=args.show_hidden,
            show_size=args.show_size,
            extensions=normalize_extensions(args.ext),
            max_file_size=OptionsBuilder.parse_size(args.max_file_size),
            sort_contents=args.sort_contents,
            use_gitignore=args.use_gitignore,
        )

    @staticmethod
    def parse_size(size_str: Optional[str]) -> Optional[int]:
        """Parse size string (e.g., '2M', '500k') to bytes. '0' means no limit."""
        if not size_str:
            return Defaults.MAX_FILE_SIZE_BYTES

        size_str = size_str.strip().lower()
        if size_str == "0":
            return None

        multipliers = {"k": 1024, "m": 1024**2, "g": 1024**3}

        try:
            if size_str[-1] in multipliers:
                value = int(size_str[:-1]) * multipliers[size_str[-1]]
            else:
                value = int(size_str)
            if value < 0:
                raise ValueError(f"negative size: {size_str}")
            return value
        except (ValueError, IndexError):
            logging.warning(f"Invalid size format: {size_str}, using {Defaults.MAX_FILE_SIZE}")
            return Defaults.MAX_FILE_SIZE_BYTES


# =============================================================================
# OUTPUT WRITER
# =============================================================================

class OutputWriter:
    """Reports outcomes and optionally copies reports to the clipboard."""

    @staticmethod
    def report(result: ExportResult, copy: bool = False) -> bool:
        if not result.success:
            print(f"❌ {result.message}", file=sys.stderr)
            return False

        print(f"\n✅ {result.message}", file=sys.stderr)
        if result.file_count is not None:
            print(
                f"   Files processed: {result.file_count.processed}, "
                f"Files skipped: {result.file_count.skipped}",
                file=sys.stderr,
            )
        if result.errors:
            print(f"⚠️ {len(result.errors)} entries could not be read", file=sys.stderr)
        if copy and result.file_path is not None:
            OutputWriter.copy_to_clipboard(result.file_path)
        return True

    @staticmethod
    def copy_to_clipboard(path: Path) -> bool:
        """Copy a written report to the clipboard."""
        if not HAS_PYPERCLIP:
            print("⚠️ pyperclip not installed, skipping clipboard copy", file=sys.stderr)
            return False

        try:
            content = path.read_text(encoding="utf-8")
            pyperclip.copy(content)
        except (OSError, pyperclip.PyperclipException) as e:
            logging.warning(f"Clipboard copy failed: {e}")
            print(f"❌ Clipboard error: {e}", file=sys.stderr)
            return False

        print(f"✅ {len(content):,} chars copied to clipboard", file=sys.stderr)
        return True


# =============================================================================
# ACTIONS
# =============================================================================

def has_action(args: argparse.Namespace) -> bool:
    return bool(
        args.print_tree or args.simple_tree or args.export_tree
        or args.export_contents or args.summary
    )


def run_action(args: argparse.Namespace, repo_path: Path) -> bool:
    """Run the single report selected on the command line."""
    if args.print_tree:
        return print_tree(repo_path, OptionsBuilder.from_args(args)).success

    if args.simple_tree:
        return simple_tree_print(repo_path).success

    if args.export_tree:
        result = export_tree(repo_path, args.export_tree, OptionsBuilder.from_args(args))
    elif args.export_contents:
        options = OptionsBuilder.from_args(args, DefaultExcludes.CONTENTS)
        result = export_file_contents(repo_path, args.export_contents, options)
    else:
        options = OptionsBuilder.from_args(args, DefaultExcludes.SUMMARY)
        result = generate_directory_summary(
            repo_path, args.summary, options, include_stats=not args.no_stats
        )
    return OutputWriter.report(result, copy=args.copy)


def resolve_source(args: argparse.Namespace, interactive: bool) -> Optional[Path]:
    """Turn the `source` argument into a local directory, cloning when needed."""
    source = args.source
    if not source:
        source = input("Provide Repository URL or local path: ").strip()
    if not source:
        print("❌ No repository URL provided. Exiting.", file=sys.stderr)
        return None

    local = Path(source).expanduser()
    if local.is_dir():
        print(f"📁 Using local directory: {local}", file=sys.stderr)
        return local

    print("\n🔍 Cloning repository, please wait...", file=sys.stderr)
    result = repo_clone.clone_repository(
        source,
        target_root=args.target_root,
        branch=args.branch,
        shallow=args.shallow,
    )
    if result.success:
        print(f"✅ Repository cloned to: {result.target_path}", file=sys.stderr)
        return result.target_path

    print(f"❌ {result.message}", file=sys.stderr)
    if not interactive:
        return None

    answer = input("Do you want to specify a local directory instead? (y/n): ").strip().lower()
    if answer != "y":
        print("Program closing.", file=sys.stderr)
        return None
    local = Path(input("Enter the path to local directory: ").strip()).expanduser()
    print(f"📁 Using local directory: {local}", file=sys.stderr)
    return local


# =============================================================================
# INTERACTIVE MODE
# =============================================================================

class InteractiveMenu:
    """Menu loop offering every report for one repository."""

    ITEMS = (
        ("1", "Print Tree"),
        ("2", "Simple Tree Print (with file sizes)"),
        ("3", "Export Tree to File"),
        ("4", "Export File Contents to File"),
        ("5", "Generate Directory Summary"),
        ("6", "Exit"),
    )

    def __init__(self, repo_path: Path, args: argparse.Namespace):
        self.repo_path = repo_path
        self.args = args
        self.handlers: Dict[str, Callable[[], None]] = {
            "1": self._print_tree,
            "2": self._simple_tree,
            "3": self._export_tree,
            "4": self._export_contents,
            "5": self._summary,
        }

    def run(self) -> int:
        while True:
            self._show()
            try:
                choice = input("Enter your choice (1-6): ").strip()
            except EOFError:
                choice = "6"

            if choice == "6":
                print("Exiting program. Goodbye!")
                return 0

            handler = self.handlers.get(choice)
            if handler is None:
                print("Invalid choice, please try again.")
                continue
            handler()

    def _show(self) -> None:
        print("\n" + "=" * 50)
        print("Repository Explorer - Choose an option:")
        print("=" * 50)
        for key, label in self.ITEMS:
            print(f"{key}. {label}")
        print("=" * 50)

    @staticmethod
    def _ask(prompt: str, default: str) -> str:
        return input(f"{prompt} (default: {default}): ").strip() or default

    def _print_tree(self) -> None:
        print("\nPrinting repository tree structure:")
        print_tree(self.repo_path, OptionsBuilder.from_args(self.args))

    def _simple_tree(self) -> None:
        print("\nSimple Tree Print:")
        simple_tree_print(self.repo_path)

    def _export_tree(self) -> None:
        path = self._ask("Enter output file path", Defaults.TREE_FILE)
        result = export_tree(self.repo_path, path, OptionsBuilder.from_args(self.args))
        OutputWriter.report(result, copy=self.args.copy)

    def _export_contents(self) -> None:
        path = self._ask("Enter output file path", Defaults.CONTENTS_FILE)
        raw = input("Enter extensions to include (comma separated, leave empty for all): ").strip()
        options = OptionsBuilder.from_args(self.args, DefaultExcludes.CONTENTS)
        if raw:
            options = replace(options, extensions=normalize_extensions([raw]))
        result = export_file_contents(self.repo_path, path, options)
        OutputWriter.report(result, copy=self.args.copy)

    def _summary(self) -> None:
        path = self._ask("Enter output file path", Defaults.SUMMARY_FILE)
        options = OptionsBuilder.from_args(self.args, DefaultExcludes.SUMMARY)
        result = generate_directory_summary(
            self.repo_path, path, options, include_stats=not self.args.no_stats
        )
        OutputWriter.report(result, copy=self.args.copy)


# =============================================================================
# CLI PARSER
# =============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="repo-explorer",
        description="Clone a repository and report its tree, contents and statistics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  repo-explorer https://github.com/user/repo        # Clone, then pick from the menu
  repo-explorer ./project --print-tree --max-depth 2
  repo-explorer ./project --export-contents out.txt --ext py --ext md
  repo-explorer ./project --summary --exclude "*.log"
        """,
    )

    # Positional
    parser.add_argument(
        "source",
        nargs="?",
        help="Repository URL or local directory (prompted when omitted)",
    )

    # Actions
    act = parser.add_argument_group("Actions (interactive menu when none is given)")
    act_excl = act.add_mutually_exclusive_group()
    act_excl.add_argument("--print-tree", action="store_true", help="Print the tree to stdout")
    act_excl.add_argument("--simple-tree", action="store_true", help="Print the tree with file sizes")
    act_excl.add_argument(
        "--export-tree", nargs="?", const=Defaults.TREE_FILE, metavar="FILE",
        help=f"Write the tree to FILE (default: {Defaults.TREE_FILE})",
    )
    act_excl.add_argument(
        "--export-contents", nargs="?", const=Defaults.CONTENTS_FILE, metavar="FILE",
        help=f"Write all file contents to FILE (default: {Defaults.CONTENTS_FILE})",
    )
    act_excl.add_argument(
        "--summary", nargs="?", const=Defaults.SUMMARY_FILE, metavar="FILE",
        help=f"Write tree and statistics to FILE (default: {Defaults.SUMMARY_FILE})",
    )

    # Filtering
    filt = parser.add_argument_group("Filtering")
    filt.add_argument("--exclude", action="append", metavar="PATTERN", help="Name or '*' pattern to exclude")
    filt.add_argument("--show-hidden", action="store_true", help="Include entries starting with '.'")
    filt.add_argument("--max-depth", type=int, default=Defaults.MAX_DEPTH, metavar="N",
                      help="Max directory depth (-1 = unlimited)")
    filt.add_argument("--show-size", action="store_true", help="Show file sizes in the tree")
    filt.add_argument("--ext", action="append", metavar="EXT", help="Extension to include in contents export")
    filt.add_argument("--max-file-size", default=Defaults.MAX_FILE_SIZE,
                      help=f"Max file size to dump, 0 for no limit (default: {Defaults.MAX_FILE_SIZE})")
    filt.add_argument("--sort-contents", action="store_true", help="Export contents in tree order")
    filt.add_argument("--use-gitignore", action="store_true", help="Hide entries matched by the root .gitignore")
    filt.add_argument("--no-stats", action="store_true", help="Leave statistics out of the summary")

    # Clone
    clone = parser.add_argument_group("Cloning")
    clone.add_argument("--branch", help="Branch to clone")
    clone.add_argument("--shallow", action="store_true", help="Clone with --depth 1")
    clone.add_argument("--target-root", default=Defaults.CLONE_ROOT, metavar="DIR",
                       help=f"Folder receiving clones (default: {Defaults.CLONE_ROOT})")

    # Output
    out = parser.add_argument_group("Output Options")
    out.add_argument("--copy", action="store_true", help="Copy the written report to the clipboard")

    # Meta
    meta = parser.add_argument_group("Information")
    meta.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    meta.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")

    return parser


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    parser = create_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        interactive = not has_action(args)
        repo_path = resolve_source(args, interactive)
        if repo_path is None:
            return 1

        if interactive:
            return InteractiveMenu(repo_path, args).run()
        return 0 if run_action(args, repo_path) else 1

    except KeyboardInterrupt:
        print("\n⚠️ Interrupted", file=sys.stderr)
        return 130
    except Exception as e:
        logging.exception("Critical error")
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
