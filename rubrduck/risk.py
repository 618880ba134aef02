"""Risk assessment, previews and descriptions for tool operations."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class RiskLevel(str, Enum):
    """How dangerous an operation is judged to be."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class OperationAnalysisError(ValueError):
    """Raised when a tool call's arguments cannot be analysed."""

    def __init__(
        self,
        message: str,
        op_type: str = "invalid",
        risk: RiskLevel = RiskLevel.HIGH,
        preview: str = "",
    ) -> None:
        super().__init__(message)
        self.op_type = op_type
        self.risk = risk
        self.preview = preview


@dataclass(frozen=True)
class OperationAnalysis:
    """Classification of a tool call: its kind, risk and a preview for the user."""

    op_type: str
    risk: RiskLevel
    preview: str


_DANGEROUS_EXTENSIONS = (".exe", ".sh", ".bat", ".cmd", ".ps1", ".py", ".js", ".php")
_SYSTEM_PATHS = ("/etc/", "/var/", "/usr/", "/bin/", "/sbin/", "/System/")
_SENSITIVE_PATTERNS = (
    "password", "secret", "key", "token", "credential",
    "api_key", "private_key", "ssh_key",
)
_LARGE_CONTENT = 1024 * 1024

_CRITICAL_SHELL_PATTERNS = ("eval", "exec")
_DANGEROUS_SHELL_PATTERNS = (
    "&&", "||", ";", "|", ">", "<", ">>", "<<", "2>", "&>",
    "$((", "`", "source",
)
_DANGEROUS_SHELL_COMMANDS = (
    "rm", "rmdir", "del", "format", "mkfs", "dd", "shred",
    "sudo", "su", "chmod", "chown", "passwd", "useradd",
    "wget", "curl", "nc", "netcat", "ssh", "scp", "rsync",
)

_GIT_RISKS = {
    **dict.fromkeys(("commit", "add", "status", "log", "diff", "show"), RiskLevel.LOW),
    **dict.fromkeys(("push", "pull", "fetch"), RiskLevel.MEDIUM),
    **dict.fromkeys(("reset", "revert", "checkout", "branch", "merge"), RiskLevel.HIGH),
    **dict.fromkeys(("force", "delete", "prune"), RiskLevel.CRITICAL),
}

_RISK_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}

_PREVIEW_LINES = 10


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def _load(args: str) -> Any:
    return json.loads(args, parse_constant=_reject_constant)


def _is_valid_json(args: str) -> bool:
    try:
        _load(args)
    except ValueError:
        return False
    return True


def _string_fields(args: str, *names: str) -> dict[str, str]:
    """Decode a JSON object and pull out string fields; missing ones are empty."""
    data = _load(args)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("arguments are not a JSON object")
    fields: dict[str, str] = {}
    for name in names:
        value = data.get(name)
        if value is None:
            fields[name] = ""
        elif isinstance(value, str):
            fields[name] = value
        else:
            raise ValueError(f"field {name!r} must be a string")
    return fields


def _optional_fields(args: str, *names: str) -> dict[str, str] | None:
    try:
        return _string_fields(args, *names)
    except ValueError:
        return None


def analyze_operation(tool: str, args: str) -> OperationAnalysis:
    """Classify a tool call and assess its risk; raise on malformed arguments."""
    if args == "":
        raise OperationAnalysisError(
            f"empty arguments for tool {tool}", preview="Empty arguments"
        )
    if not _is_valid_json(args):
        raise OperationAnalysisError(
            f"invalid JSON arguments for tool {tool}: {args}",
            preview="Invalid JSON arguments",
        )
    if tool == "file_operations":
        return _analyze_file_operation(args)
    if tool == "shell_execute":
        return _analyze_shell_operation(args)
    if tool == "git_operations":
        return _analyze_git_operation(args)
    return OperationAnalysis("unknown", RiskLevel.HIGH, "Unknown operation type")


def _analyze_file_operation(args: str) -> OperationAnalysis:
    try:
        params = _string_fields(args, "type", "path", "content")
    except ValueError as exc:
        raise OperationAnalysisError(
            f"failed to parse file operation args: {exc}",
            op_type="file_invalid",
            preview=f"Invalid file operation arguments: {args}",
        ) from exc

    op = params["type"]
    path = params["path"]
    if not op:
        raise OperationAnalysisError(
            "missing type in file operation",
            op_type="file_invalid",
            preview="Missing operation type",
        )
    if op == "read":
        return OperationAnalysis("file_read", RiskLevel.LOW, f"Reading file: {path}")
    if op == "write":
        content = params["content"]
        return OperationAnalysis(
            "file_write",
            assess_file_write_risk(path, content),
            file_write_preview(path, content),
        )
    if op == "list":
        return OperationAnalysis("file_list", RiskLevel.LOW, f"Listing directory: {path}")
    if op == "search":
        return OperationAnalysis("file_search", RiskLevel.LOW, f"Searching in: {path}")
    return OperationAnalysis("file_unknown", RiskLevel.MEDIUM, "Unknown file operation")


def _analyze_shell_operation(args: str) -> OperationAnalysis:
    try:
        params = _string_fields(args, "command")
    except ValueError as exc:
        raise OperationAnalysisError(
            f"failed to parse shell operation args: {exc}",
            op_type="shell_invalid",
            preview=f"Invalid shell operation arguments: {args}",
        ) from exc

    command = params["command"]
    if not command:
        raise OperationAnalysisError(
            "missing command in shell operation",
            op_type="shell_invalid",
            preview="Missing command",
        )
    return OperationAnalysis(
        "shell_execute",
        assess_shell_command_risk(command),
        _shell_command_preview(command),
    )


def _analyze_git_operation(args: str) -> OperationAnalysis:
    try:
        params = _string_fields(args, "operation", "args")
    except ValueError as exc:
        raise OperationAnalysisError(str(exc), op_type="") from exc

    operation = params["operation"]
    return OperationAnalysis(
        "git_operation",
        assess_git_operation_risk(operation),
        _git_operation_preview(operation, params["args"]),
    )


def assess_file_write_risk(path: str, content: str) -> RiskLevel:
    """Judge the risk of writing ``content`` to ``path``."""
    if path.lower().endswith(_DANGEROUS_EXTENSIONS):
        return RiskLevel.HIGH
    if path.startswith(_SYSTEM_PATHS):
        return RiskLevel.CRITICAL
    if len(content.encode("utf-8")) > _LARGE_CONTENT:
        return RiskLevel.MEDIUM
    lowered = content.lower()
    if any(pattern in lowered for pattern in _SENSITIVE_PATTERNS):
        return RiskLevel.HIGH
    return RiskLevel.LOW


def assess_shell_command_risk(command: str) -> RiskLevel:
    """Judge the risk of running a shell command."""
    if any(pattern in command for pattern in _CRITICAL_SHELL_PATTERNS):
        return RiskLevel.CRITICAL
    if any(pattern in command for pattern in _DANGEROUS_SHELL_PATTERNS):
        return RiskLevel.CRITICAL
    if ">" in command or "<" in command or "&" in command:
        return RiskLevel.CRITICAL
    if any(name in command for name in _DANGEROUS_SHELL_COMMANDS):
        return RiskLevel.HIGH
    return RiskLevel.LOW


def assess_git_operation_risk(operation: str) -> RiskLevel:
    """Judge the risk of a git operation by name."""
    return _GIT_RISKS.get(operation, RiskLevel.MEDIUM)


def file_write_preview(path: str, content: str) -> str:
    """Summarise a file write: path, size and the first lines of content."""
    parts = [f"File: {path}\n", f"Size: {len(content.encode('utf-8'))} bytes\n"]
    lines = content.split("\n")
    if len(lines) > _PREVIEW_LINES:
        parts.append(f"Preview (first {_PREVIEW_LINES} lines):\n")
        parts.extend(f"  {line}\n" for line in lines[:_PREVIEW_LINES])
        parts.append(f"  ... and {len(lines) - _PREVIEW_LINES} more lines\n")
    else:
        parts.append("Content:\n")
        parts.extend(f"  {line}\n" for line in lines)
    return "".join(parts)


def _shell_command_preview(command: str) -> str:
    return f"Command: {command}\nWorking Directory: Current project directory"


def _git_operation_preview(operation: str, args: str) -> str:
    return f"Git {operation}: {args}"


def describe_operation(tool: str, args: str, op_type: str) -> str:
    """Return a short human-readable description of an operation."""
    if op_type == "file_write":
        params = _optional_fields(args, "path")
        if params is not None:
            return f"Write file: {params['path']}"
    elif op_type == "shell_execute":
        params = _optional_fields(args, "command")
        if params is not None:
            return f"Execute command: {params['command']}"
    elif op_type == "git_operation":
        params = _optional_fields(args, "operation")
        if params is not None:
            return f"Git {params['operation']}"
    return f"{op_type} operation"


def extract_metadata(tool: str, args: str) -> dict[str, Any]:
    """Pull the salient fields of a tool call's arguments into a dict."""
    if tool == "file_operations":
        params = _optional_fields(args, "type", "path")
        if params is not None:
            return {"file_type": params["type"], "file_path": params["path"]}
    elif tool == "shell_execute":
        params = _optional_fields(args, "command")
        if params is not None:
            return {"command": params["command"]}
    elif tool == "git_operations":
        params = _optional_fields(args, "operation")
        if params is not None:
            return {"git_operation": params["operation"]}
    return {}


def batch_risk(risks: Iterable[RiskLevel]) -> RiskLevel:
    """Return the highest risk among ``risks``; an empty batch is low risk."""
    highest = RiskLevel.LOW
    for risk in risks:
        if risk is RiskLevel.CRITICAL:
            return RiskLevel.CRITICAL
        if _RISK_RANK[risk] > _RISK_RANK[highest]:
            highest = risk
    return highest