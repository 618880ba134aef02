"""Git operations offered to the model, run inside a working tree."""

from __future__ import annotations

import logging
import subprocess
import time

from rubrduck.messages import ToolDefinition, ToolError
from rubrduck.tools.files import _int_field, _parse_args, _str_field

log = logging.getLogger(__name__)

_DEFAULT_MAX_LINES = 100
_DEFAULT_TIMEOUT = 30.0

_STATUS_DESCRIPTIONS = {
    "M ": "Modified",
    " M": "Modified (staged)",
    "A ": "Added",
    "D ": "Deleted",
    "R ": "Renamed",
    "C ": "Copied",
    "??": "Untracked",
}


class _GitCommandError(Exception):
    """A git subprocess failed, timed out or could not be started."""


class GitTool:
    """Status, diff, commit, branch, log and remote operations on a repository."""

    name = "git_operations"

    def __init__(self, base_path: str, timeout: float = _DEFAULT_TIMEOUT) -> None:
        self.base_path = base_path
        self.timeout = timeout

    def definition(self) -> ToolDefinition:
        """Describe the tool and its parameters for the model."""
        return ToolDefinition(
            name=self.name,
            description="Perform Git operations including status, diff, commit, and branch management",
            parameters={
                "type": "object",
                "properties": {
                    "operation": {
                        "type": "string",
                        "enum": ["status", "diff", "commit", "branch", "log", "remote"],
                        "description": "The Git operation to perform",
                    },
                    "args": {
                        "type": "string",
                        "description": "Additional arguments for the operation (e.g., commit message, branch name)",
                    },
                    "file": {
                        "type": "string",
                        "description": "Specific file to operate on (for diff, status, etc.)",
                    },
                    "max_lines": {
                        "type": "integer",
                        "description": "Maximum number of lines to return (for log, diff, etc.)",
                        "default": _DEFAULT_MAX_LINES,
                    },
                },
                "required": ["operation"],
            },
        )

    def execute(self, args: str) -> str:
        """Run the git operation described by the JSON ``args``."""
        params = _parse_args(args)
        operation = _str_field(params, "operation")
        extra = _str_field(params, "args")
        file = _str_field(params, "file")
        max_lines = _int_field(params, "max_lines") or _DEFAULT_MAX_LINES

        if not operation:
            raise ToolError("operation is required")

        log.debug(
            "Executing git operation %s (args=%r, file=%r, max_lines=%d)",
            operation,
            extra,
            file,
            max_lines,
        )
        deadline = time.monotonic() + self.timeout

        if operation == "status":
            return self._status(deadline, file)
        if operation == "diff":
            return self._diff(deadline, file, max_lines)
        if operation == "commit":
            return self._commit(deadline, extra)
        if operation == "branch":
            return self._branch(deadline, extra)
        if operation == "log":
            return self._log(deadline, max_lines)
        if operation == "remote":
            return self._remote(deadline)
        raise ToolError(f"unknown git operation: {operation}")

    def _git(self, deadline: float, *args: str) -> str:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise _GitCommandError(f"timed out after {self.timeout}s")
        try:
            completed = subprocess.run(
                ["git", *args],
                cwd=self.base_path,
                capture_output=True,
                timeout=remaining,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or b"").decode("utf-8", errors="replace").strip()
            message = f"exit status {exc.returncode}"
            raise _GitCommandError(f"{message}: {detail}" if detail else message) from exc
        except subprocess.TimeoutExpired as exc:
            raise _GitCommandError(f"timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise _GitCommandError(str(exc)) from exc
        return completed.stdout.decode("utf-8", errors="replace")

    def _run(self, deadline: float, failure: str, *args: str) -> str:
        try:
            return self._git(deadline, *args)
        except _GitCommandError as exc:
            raise ToolError(f"{failure}: {exc}") from exc

    def _status(self, deadline: float, file: str) -> str:
        command = ["status", "--porcelain"]
        if file:
            command += ["--", file]
        output = self._run(deadline, "git status failed", *command)
        if not output:
            return "Working directory is clean"

        lines = ["Git Status:\n\n"]
        for line in output.strip().split("\n"):
            if len(line) < 3:
                continue
            description = _STATUS_DESCRIPTIONS.get(line[:2], "Unknown")
            lines.append(f"{description}: {line[3:]}\n")
        return "".join(lines)

    def _diff(self, deadline: float, file: str, max_lines: int) -> str:
        command = ["diff"]
        if file:
            command += ["--", file]
        output = self._run(deadline, "git diff failed", *command)
        if not output:
            return "No changes to show"

        lines = output.split("\n")
        if len(lines) > max_lines:
            lines = lines[:max_lines] + [f"\n... (showing first {max_lines} lines)"]
        return "\n".join(lines)

    def _commit(self, deadline: float, message: str) -> str:
        if not message:
            raise ToolError("commit message is required")

        status = self._run(deadline, "failed to check git status", "status", "--porcelain")
        if not status:
            return "No changes to commit"

        self._run(deadline, "git add failed", "add", ".")
        output = self._run(deadline, "git commit failed", "commit", "-m", message)
        return f"Successfully committed changes:\n{output}"

    def _branch(self, deadline: float, args: str) -> str:
        if not args:
            return self._list_branches(deadline)

        parts = args.split()
        if not parts:
            raise ToolError("invalid branch operation")

        action = parts[0]
        if action not in ("create", "new", "switch", "checkout", "delete"):
            raise ToolError(f"unknown branch operation: {action}")
        if len(parts) < 2:
            raise ToolError("branch name required")

        name = parts[1]
        if action in ("create", "new"):
            return self._create_branch(deadline, name)
        if action in ("switch", "checkout"):
            return self._switch_branch(deadline, name)
        return self._delete_branch(deadline, name)

    def _list_branches(self, deadline: float) -> str:
        listing = self._run(deadline, "git branch failed", "branch", "-a").strip()
        if not listing:
            # A repository without commits lists no branches; ask for HEAD's name.
            try:
                current = self._git(deadline, "symbolic-ref", "--short", "HEAD")
            except _GitCommandError:
                pass
            else:
                listing = "* " + current.strip()

        lines = ["Branches:\n\n"]
        for line in listing.split("\n"):
            if not line.strip():
                continue
            lines.append(f"- {line.removeprefix('* ').strip()}\n")
        return "".join(lines)

    def _create_branch(self, deadline: float, name: str) -> str:
        output = self._run(deadline, "failed to create branch", "checkout", "-b", name)
        return f"Successfully created and switched to branch '{name}':\n{output}"

    def _switch_branch(self, deadline: float, name: str) -> str:
        try:
            output = self._git(deadline, "checkout", name)
        except _GitCommandError as exc:
            # The branch may not exist yet (e.g. in an empty repository): create it.
            try:
                created = self._git(deadline, "checkout", "-b", name)
            except _GitCommandError:
                raise ToolError(f"failed to switch branch: {exc}") from exc
            return f"Successfully created and switched to branch '{name}':\n{created}"
        return f"Successfully switched to branch '{name}':\n{output}"

    def _delete_branch(self, deadline: float, name: str) -> str:
        output = self._run(deadline, "failed to delete branch", "branch", "-d", name)
        return f"Successfully deleted branch '{name}':\n{output}"

    def _log(self, deadline: float, max_lines: int) -> str:
        output = self._run(
            deadline, "git log failed", "log", "--oneline", "--graph", "--decorate"
        )
        if not output:
            return "No commits found"

        lines = output.strip().split("\n")
        if len(lines) > max_lines:
            lines = lines[:max_lines] + [f"\n... (showing first {max_lines} commits)"]
        return "Recent Commits:\n\n" + "\n".join(lines)

    def _remote(self, deadline: float) -> str:
        output = self._run(deadline, "git remote failed", "remote", "-v")
        if not output:
            return "No remote repositories configured"
        return "Remote Repositories:\n\n" + output