"""File-system operations offered to the model, confined to a base directory."""

from __future__ import annotations

import json
import logging
import os
import stat
import time
from typing import Any

from rubrduck.messages import ToolDefinition, ToolError

log = logging.getLogger(__name__)

_READ_LIMIT = 1024 * 1024
_LARGE_FILE = 50 * 1024
_VERY_LARGE_FILE = 200 * 1024
_DEFAULT_MAX_RESULTS = 50


class _StopSearch(Exception):
    pass


def format_file_size(size: int) -> str:
    """Format a byte count with binary units, e.g. ``1.5 KB``."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"


def _format_duration(seconds: float) -> str:
    ns = round(seconds * 1e9)
    if ns == 0:
        return "0s"
    if ns < 1_000:
        return f"{ns}ns"

    def trimmed(value: float, places: int) -> str:
        return f"{value:.{places}f}".rstrip("0").rstrip(".")

    if ns < 1_000_000:
        return trimmed(ns / 1e3, 3) + "µs"
    if ns < 1_000_000_000:
        return trimmed(ns / 1e6, 6) + "ms"
    return trimmed(ns / 1e9, 9) + "s"


def _rate_kb_per_second(size: int, seconds: float) -> float:
    return size / 1024 / seconds if seconds > 0 else float("inf")


def _parse_args(args: str) -> dict[str, Any]:
    try:
        data = json.loads(args)
    except json.JSONDecodeError as exc:
        raise ToolError(f"invalid arguments: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ToolError("invalid arguments: expected a JSON object")
    return data


def _str_field(params: dict[str, Any], name: str) -> str:
    value = params.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ToolError(f"invalid arguments: field {name!r} must be a string")
    return value


def _int_field(params: dict[str, Any], name: str) -> int:
    value = params.get(name)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ToolError(f"invalid arguments: field {name!r} must be an integer")
    return value


class FileTool:
    """Read, write, append, list and search files under a base path."""

    name = "file_operations"

    def __init__(self, base_path: str) -> None:
        self.base_path = base_path

    def definition(self) -> ToolDefinition:
        """Describe the tool and its parameters for the model."""
        return ToolDefinition(
            name=self.name,
            description="Perform file system operations including read, write, list, and search",
            parameters={
                "type": "object",
                "properties": {
                    "type": {
                        "type": "string",
                        "enum": ["read", "write", "list", "search", "append"],
                        "description": "The type of file operation to perform",
                    },
                    "path": {
                        "type": "string",
                        "description": "The file or directory path (relative to project root)",
                    },
                    "content": {
                        "type": "string",
                        "description": "Content to write to file (only for write operations)",
                    },
                    "pattern": {
                        "type": "string",
                        "description": "Search pattern for file search (only for search operations)",
                    },
                    "max_results": {
                        "type": "integer",
                        "description": "Maximum number of results to return (for list and search operations)",
                        "default": _DEFAULT_MAX_RESULTS,
                    },
                },
                "required": ["type", "path"],
            },
        )

    def execute(self, args: str) -> str:
        """Run the operation described by the JSON ``args``."""
        params = _parse_args(args)
        op_type = _str_field(params, "type")
        path = _str_field(params, "path")
        content = _str_field(params, "content")
        pattern = _str_field(params, "pattern")
        max_results = _int_field(params, "max_results") or _DEFAULT_MAX_RESULTS

        try:
            full_path = self._sanitize_path(path)
        except ToolError as exc:
            raise ToolError(f"invalid path: {exc}") from exc

        if op_type == "read":
            return self._read(full_path)
        if op_type == "write":
            return self._write(full_path, content)
        if op_type == "append":
            return self._append(full_path, content)
        if op_type == "list":
            return self._list(full_path, max_results)
        if op_type == "search":
            return self._search(full_path, pattern, max_results)
        raise ToolError(f"unknown operation type: {op_type}")

    def _sanitize_path(self, path: str) -> str:
        if not path:
            return self.base_path
        clean = os.path.normpath(path)
        try:
            if os.path.isabs(clean):
                clean = os.path.relpath(clean, self.base_path)
            full = os.path.normpath(os.path.join(self.base_path, clean))
            rel = os.path.relpath(full, self.base_path)
        except ValueError as exc:
            raise ToolError("path outside project bounds") from exc
        if rel.startswith(".."):
            raise ToolError("path outside project bounds")
        return full

    def _read(self, path: str) -> str:
        log.debug("Reading file %s", path)
        try:
            with open(path, "rb") as handle:
                data = handle.read()
        except OSError as exc:
            raise ToolError(f"failed to read file: {exc}") from exc
        if len(data) > _READ_LIMIT:
            head = data[:1024].decode("utf-8", errors="replace")
            return f"File too large ({len(data)} bytes). Showing first 1KB:\n\n{head}"
        return data.decode("utf-8", errors="replace")

    @staticmethod
    def _prepare_target(path: str) -> None:
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        except OSError as exc:
            raise ToolError(f"failed to create directory: {exc}") from exc
        try:
            mode = os.stat(path).st_mode
        except OSError:
            return
        if not mode & stat.S_IWUSR:
            raise ToolError("file is read-only")

    def _write(self, path: str, content: str) -> str:
        data = content.encode("utf-8")
        size = len(data)
        log.debug("Writing file %s (%d bytes)", path, size)
        if size > _VERY_LARGE_FILE:
            log.error("File content for %s is extremely large (%d bytes)", path, size)
            raise ToolError(
                f"file content is too large ({size // 1024} KB) for a single write operation. "
                "Consider breaking this into smaller incremental updates or using append operations"
            )
        if size > _LARGE_FILE:
            log.warning("Writing large file %s (%d KB)", path, size // 1024)

        self._prepare_target(path)
        start = time.perf_counter()
        try:
            with open(path, "wb") as handle:
                handle.write(data)
        except OSError as exc:
            raise ToolError(f"failed to write file: {exc}") from exc
        elapsed = time.perf_counter() - start
        took = _format_duration(elapsed)

        if size > _LARGE_FILE:
            rate = _rate_kb_per_second(size, elapsed)
            log.info("Large file write to %s completed in %s", path, took)
            return f"Successfully wrote {size // 1024} KB to {path} (took {took}, {rate:.1f} KB/s)"
        return f"Successfully wrote {size} bytes to {path} (took {took})"

    def _append(self, path: str, content: str) -> str:
        data = content.encode("utf-8")
        size = len(data)
        log.debug("Appending to file %s (%d bytes)", path, size)

        self._prepare_target(path)
        try:
            handle = open(path, "ab")
        except OSError as exc:
            raise ToolError(f"failed to open file for append: {exc}") from exc
        with handle:
            start = time.perf_counter()
            try:
                handle.write(data)
            except OSError as exc:
                raise ToolError(f"failed to append to file: {exc}") from exc
            elapsed = time.perf_counter() - start
        took = _format_duration(elapsed)

        if size > _LARGE_FILE:
            rate = _rate_kb_per_second(size, elapsed)
            log.info("Large file append to %s completed in %s", path, took)
            return f"Successfully appended {size // 1024} KB to {path} (took {took}, {rate:.1f} KB/s)"
        return f"Successfully appended {size} bytes to {path} (took {took})"

    def _list(self, path: str, max_results: int) -> str:
        log.debug("Listing directory %s", path)
        try:
            with os.scandir(path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            raise ToolError(f"failed to read directory: {exc}") from exc

        lines = [f"Contents of {path}:\n\n"]
        count = 0
        for entry in entries:
            if count >= max_results:
                lines.append(f"\n... and {len(entries) - max_results} more entries")
                break
            try:
                info = entry.stat(follow_symlinks=False)
            except OSError:
                continue
            is_dir = entry.is_dir(follow_symlinks=False)
            size = "<DIR>" if is_dir else format_file_size(info.st_size)
            lines.append(f"{entry.name:<40} {size:>8} {stat.filemode(info.st_mode)}\n")
            count += 1
        return "".join(lines)

    def _search(self, base: str, pattern: str, max_results: int) -> str:
        log.debug("Searching files in %s for %r", base, pattern)
        if not pattern:
            raise ToolError("search pattern is required")

        needle = pattern.lower()
        results: list[str] = []

        def visit(path: str, is_dir: bool) -> None:
            name = os.path.basename(path)
            if name.startswith("."):
                return
            if not is_dir and needle in name.lower():
                results.append(os.path.relpath(path, base))
            if len(results) >= max_results:
                raise _StopSearch
            if is_dir:
                try:
                    with os.scandir(path) as it:
                        children = sorted(it, key=lambda e: e.name)
                except OSError:
                    return
                for child in children:
                    try:
                        child_is_dir = child.is_dir(follow_symlinks=False)
                    except OSError:
                        continue
                    visit(child.path, child_is_dir)

        try:
            root_mode = os.lstat(base).st_mode
        except OSError:
            root_mode = None
        if root_mode is not None:
            try:
                visit(base, stat.S_ISDIR(root_mode))
            except _StopSearch:
                pass

        if not results:
            return f"No files found matching pattern '{pattern}' in {base}"
        listing = "".join(f"- {found}\n" for found in results)
        return f"Found {len(results)} files matching '{pattern}':\n\n{listing}"