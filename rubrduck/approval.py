"""User approval of tool calls, with policy checks and auto-approval rules."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from rubrduck.messages import ToolCall
from rubrduck.risk import (
    OperationAnalysisError,
    RiskLevel,
    analyze_operation,
    batch_risk,
    describe_operation,
    extract_metadata,
)

log = logging.getLogger(__name__)


class ApprovalError(Exception):
    """Raised when an approval request cannot be processed."""


@dataclass
class ApprovalRequest:
    """An operation awaiting the user's decision."""

    id: str
    type: str
    tool: str
    arguments: str
    description: str
    risk: RiskLevel
    preview: str
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ApprovalResult:
    """The decision on an approval request."""

    approved: bool
    reason: str = ""


@dataclass
class Policy:
    """A named approval policy."""

    name: str = ""
    description: str = ""
    auto_approve: bool = False
    allowed_ops: list[str] = field(default_factory=list)
    blocked_ops: list[str] = field(default_factory=list)
    risk_level: RiskLevel = RiskLevel.LOW


@dataclass
class ApprovalConfig:
    """Settings that govern which operations need the user's approval."""

    mode: str = "suggest"
    auto_approve_low_risk: bool = True
    auto_approve_safe_commands: list[str] = field(default_factory=list)
    auto_approve_safe_paths: list[str] = field(default_factory=list)
    blocked_commands: list[str] = field(default_factory=list)
    blocked_paths: list[str] = field(default_factory=list)
    max_batch_size: int = 10
    timeout: float = 0.0
    policies: dict[str, Policy] = field(default_factory=dict)


ApprovalCallback = Callable[[ApprovalRequest], ApprovalResult]


class ApprovalSystem:
    """Decide whether tool calls may run, asking the user through a callback."""

    def __init__(
        self,
        config: ApprovalConfig | None = None,
        callback: ApprovalCallback | None = None,
    ) -> None:
        self.config = config if config is not None else ApprovalConfig()
        self.callback = callback
        self._pending: dict[str, ApprovalRequest] = {}

    def request_approval(self, tool: str, args: str, tool_call: ToolCall) -> ApprovalResult:
        """Decide on one tool call; raise :class:`ApprovalError` if the callback fails."""
        try:
            analysis = analyze_operation(tool, args)
        except OperationAnalysisError as exc:
            return ApprovalResult(False, f"Failed to analyze operation: {exc}")

        if self._is_blocked(args):
            return ApprovalResult(False, "Operation blocked by policy")

        if self._can_auto_approve(args, analysis.risk):
            log.info(
                "Auto-approving operation %s (%s, %s risk)",
                tool,
                analysis.op_type,
                analysis.risk.value,
            )
            return ApprovalResult(True, "Auto-approved")

        request = ApprovalRequest(
            id=tool_call.id,
            type=analysis.op_type,
            tool=tool,
            arguments=args,
            description=describe_operation(tool, args, analysis.op_type),
            risk=analysis.risk,
            preview=analysis.preview,
            metadata=extract_metadata(tool, args),
        )
        self._pending[request.id] = request

        if self.callback is None:
            return ApprovalResult(False, "No approval handler available")

        try:
            return self.callback(request)
        except ApprovalError:
            raise
        except Exception as exc:
            raise ApprovalError(str(exc)) from exc
        finally:
            self._pending.pop(request.id, None)

    def request_batch_approval(self, requests: list[ApprovalRequest]) -> list[ApprovalResult]:
        """Decide on several requests at once, one result per request."""
        if not requests:
            return []
        count = len(requests)
        if count > self.config.max_batch_size:
            raise ApprovalError(
                f"batch size {count} exceeds maximum {self.config.max_batch_size}"
            )

        risk = batch_risk(req.risk for req in requests)
        if self._can_auto_approve_batch(requests, risk):
            return [ApprovalResult(True, "Batch auto-approved") for _ in requests]

        if self.callback is None:
            return [
                ApprovalResult(False, "No batch approval handler available")
                for _ in requests
            ]

        batch = ApprovalRequest(
            id=f"batch_{int(time.time())}",
            type="batch",
            tool="batch_operations",
            arguments=f"{count} operations",
            description=_batch_description(requests),
            risk=risk,
            preview=_batch_preview(requests),
            metadata={"operations": list(requests), "count": count},
        )
        try:
            result = self.callback(batch)
        except ApprovalError:
            raise
        except Exception as exc:
            raise ApprovalError(str(exc)) from exc
        return [result for _ in requests]

    def pending_requests(self) -> list[ApprovalRequest]:
        """Return the requests still awaiting a decision."""
        return list(self._pending.values())

    def clear_pending_requests(self) -> None:
        """Forget all pending requests."""
        self._pending = {}

    def _is_blocked(self, args: str) -> bool:
        blocked = (*self.config.blocked_commands, *self.config.blocked_paths)
        return any(item in args for item in blocked)

    def _can_auto_approve(self, args: str, risk: RiskLevel) -> bool:
        if self.config.mode == "full-auto":
            return True
        if self.config.auto_approve_low_risk and risk is RiskLevel.LOW:
            return True
        safe = (*self.config.auto_approve_safe_commands, *self.config.auto_approve_safe_paths)
        return any(item in args for item in safe)

    def _can_auto_approve_batch(
        self, requests: list[ApprovalRequest], risk: RiskLevel
    ) -> bool:
        if self.config.mode == "full-auto":
            return True
        if self.config.auto_approve_low_risk and risk is RiskLevel.LOW:
            return True
        return all(self._can_auto_approve(req.arguments, req.risk) for req in requests)


def _batch_description(requests: list[ApprovalRequest]) -> str:
    if not requests:
        return "No operations"
    lines = [f"Batch of {len(requests)} operations:\n"]
    lines.extend(f"  {number}. {req.description}\n" for number, req in enumerate(requests, 1))
    return "".join(lines)


def _batch_preview(requests: list[ApprovalRequest]) -> str:
    lines = ["Operations to be executed:\n\n"]
    for number, req in enumerate(requests, 1):
        lines.append(f"{number}. {req.description} ({req.risk.value} risk)\n")
        lines.append(f"   {req.preview}\n\n")
    return "".join(lines)