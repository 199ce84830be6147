"""File enumeration and rendering of candidate files.

Pure filesystem I/O. Hosts that already know which files to offer (an
editor, a test) implement FileSource themselves; WorkspaceFileSource is
the default used by the CLI.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path, PurePosixPath
from typing import Protocol

import structlog

from codescout.retrieval.hashing import fingerprint
from codescout.retrieval.models import CandidateFile, FileHandle

log = structlog.get_logger()

# Extension -> code fence language tag
_FENCE_LANGUAGES: dict[str, str] = {
    ".c": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".dart": "dart",
    ".go": "go",
    ".h": "c",
    ".hpp": "cpp",
    ".java": "java",
    ".js": "javascript",
    ".jsx": "javascript",
    ".json": "json",
    ".kt": "kotlin",
    ".md": "markdown",
    ".php": "php",
    ".py": "python",
    ".rb": "ruby",
    ".rs": "rust",
    ".scala": "scala",
    ".sh": "bash",
    ".sql": "sql",
    ".swift": "swift",
    ".toml": "toml",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".yaml": "yaml",
    ".yml": "yaml",
}


class FileSource(Protocol):
    """Capability the orchestrator uses to enumerate and read files."""

    def list_candidate_files(self, glob: str) -> Sequence[FileHandle]: ...

    def read_file(self, handle: FileHandle) -> str: ...


def fence_language(path: str) -> str:
    """Code fence tag for *path*, or "" when the extension is unknown."""
    return _FENCE_LANGUAGES.get(PurePosixPath(path).suffix.lower(), "")


def glob_regex(pattern: str) -> re.Pattern[str]:
    """Compile a workspace-relative glob into a regex over posix paths.

    ``**/`` matches zero or more directories, ``*`` and ``?`` never cross
    a ``/``, and ``[...]`` is a character class (``[!...]`` negates).
    """
    out: list[str] = []
    pattern = pattern.strip("/")
    i, n = 0, len(pattern)
    while i < n:
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        elif pattern[i] == "[" and (end := pattern.find("]", i + 2)) != -1:
            body = pattern[i + 1 : end]
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append("[" + body.replace("\\", "\\\\") + "]")
            i = end + 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out))


def render_candidate(handle: FileHandle, content: str) -> CandidateFile:
    """Wrap file content in a header naming the file, then fingerprint it.

    The header makes the file's name and path part of what gets embedded,
    so a rename alone changes the fingerprint.
    """
    lang = fence_language(handle.relative_path)
    text = (
        f"File name: {handle.display_name}\n"
        f"File path: {handle.relative_path}\n"
        f"File code:\n\n"
        f"```{lang}\n{content}```\n\n"
        f"------\n\n"
    )
    return CandidateFile(
        identity=handle.identity,
        display_name=handle.display_name,
        relative_path=handle.relative_path,
        rendered_text=text,
        fingerprint=fingerprint(text),
    )


class WorkspaceFileSource:
    """FileSource over a directory tree."""

    def __init__(
        self,
        root: Path,
        *,
        max_file_size_bytes: int | None = None,
        excluded_dirs: Sequence[str] = (),
    ) -> None:
        self.root = root.resolve()
        self._max_size = max_file_size_bytes
        self._excluded = frozenset(excluded_dirs)

    def list_candidate_files(self, glob: str) -> list[FileHandle]:
        """Files under the root whose relative path matches *glob*, sorted.

        Excluded directories are pruned during the walk, never entered.
        """
        matcher = glob_regex(glob)
        matched: list[tuple[Path, PurePosixPath]] = []
        for dirpath, dirnames, filenames in self.root.walk():
            dirnames[:] = [d for d in dirnames if d not in self._excluded]
            for filename in filenames:
                path = dirpath / filename
                rel = PurePosixPath(path.relative_to(self.root).as_posix())
                if matcher.fullmatch(str(rel)):
                    matched.append((path, rel))

        handles: list[FileHandle] = []
        skipped_large = 0
        for path, rel in sorted(matched, key=lambda pair: pair[1].parts):
            try:
                if not path.is_file():
                    continue
                size = path.stat().st_size
            except OSError as e:
                log.debug("sources.stat_failed", path=str(rel), error=str(e))
                continue
            if self._max_size is not None and size > self._max_size:
                skipped_large += 1
                continue
            handles.append(
                FileHandle(
                    identity=path.as_posix(),
                    display_name=path.name,
                    relative_path=str(rel),
                )
            )
        if skipped_large:
            log.debug("sources.skipped_large_files", count=skipped_large, limit=self._max_size)
        return handles

    def read_file(self, handle: FileHandle) -> str:
        return Path(handle.identity).read_text(encoding="utf-8", errors="replace")
