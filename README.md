# rubrduck

`rubrduck` provides the building blocks of an AI coding agent:

- tools that a chat model can call, with their arguments passed as JSON strings;
- a risk analysis of each tool call;
- an approval system that decides which calls may run without asking and which go
  to you.

## What it includes

- **`rubrduck.tools.files.FileTool`** reads, writes, appends, lists and searches
  files. Every path stays inside the base directory.
  - A path that leads outside the base directory is refused with "path outside
    project bounds".
  - Reading a file larger than 1 MB returns only its first 1 KB.
  - A single write larger than 200 KB is refused. Use append for content that size.
  - Files that are not writable are never overwritten.
- **`rubrduck.tools.git.GitTool`** runs `status`, `diff`, `commit`, `branch`,
  `log` and `remote` in a working tree.
  - `branch` lists branches when called with no arguments. It also takes
    `create <name>`, `new <name>`, `switch <name>`, `checkout <name>` and
    `delete <name>`.
  - Each call has a time limit. The default is 30 seconds, set with the `timeout`
    argument of the constructor.
- **`rubrduck.risk`** classifies a tool call with `analyze_operation`. It returns
  an `OperationAnalysis` holding `op_type`, a `RiskLevel` (low, medium, high or
  critical) and a preview. The individual checks are also available:
  - `assess_file_write_risk`
  - `assess_shell_command_risk`
  - `assess_git_operation_risk`
  - `file_write_preview`
  - `describe_operation`
  - `extract_metadata`
  - `batch_risk`
- **`rubrduck.approval.ApprovalSystem`** applies an `ApprovalConfig` to each call.
  - The config sets the mode (`"full-auto"` approves everything), whether
    low-risk calls are auto-approved, the safe commands and paths, the blocked
    commands and paths, and the largest batch size.
  - A call that is neither blocked nor auto-approved goes to a callback that you
    supply.
- **`rubrduck.messages`** holds the data types that pass between a chat provider
  and an agent:
  - `Message`, `ToolCall`, `FunctionCall`
  - `ToolDefinition`, whose `to_dict()` gives the function-calling layout
  - `ChatRequest`, `ChatResponse`, `StreamChunk`, `StreamDelta`, `Usage`
  - `StreamEvent` and `StreamEventType`
  - `ToolError`, which every tool raises when an operation fails

## Installation

```
pip install rubrduck
```

`GitTool` needs `git` on the `PATH`.

## Using the tools

```python
from rubrduck.messages import ToolError
from rubrduck.tools.files import FileTool, format_file_size
from rubrduck.tools.git import GitTool

files = FileTool("/path/to/project")
print(files.execute('{"type": "list", "path": "."}'))
print(files.execute('{"type": "search", "path": ".", "pattern": "test"}'))

try:
    files.execute('{"type": "read", "path": "../../etc/passwd"}')
except ToolError as exc:
    print(exc)  # invalid path: path outside project bounds

git = GitTool("/path/to/project")
print(git.execute('{"operation": "status"}'))
print(git.execute('{"operation": "log", "max_lines": 10}'))

print(format_file_size(1536))  # 1.5 KB
```

Each tool's `definition()` returns the `ToolDefinition` to offer the model.

## Assessing risk

```python
from rubrduck.risk import RiskLevel, analyze_operation, assess_shell_command_risk

analysis = analyze_operation("file_operations", '{"type": "write", "path": "run.sh", "content": "echo hi"}')
print(analysis.op_type, analysis.risk)  # file_write high
print(analysis.preview)

assert assess_shell_command_risk("ls | grep x") is RiskLevel.CRITICAL
```

When the arguments are empty or malformed, `analyze_operation` raises
`OperationAnalysisError`.

## Approval

```python
from rubrduck.approval import ApprovalConfig, ApprovalResult, ApprovalSystem
from rubrduck.messages import ToolCall

def ask_user(request):
    print(request.description)
    print(request.preview)
    return ApprovalResult(approved=input("approve? [y/N] ") == "y", reason="user decision")

system = ApprovalSystem(ApprovalConfig(mode="suggest"), ask_user)
result = system.request_approval(
    "file_operations",
    '{"type": "write", "path": "build.sh", "content": "make"}',
    ToolCall(id="call_1"),
)
print(result.approved, result.reason)
```

How `request_approval` decides:

1. A call whose arguments cannot be analysed, or that contains a blocked command or
   path, is refused.
2. A low-risk call is approved automatically.
3. Any other call goes to the callback. If the callback raises, `ApprovalError` is
   raised.
4. If no callback is set, the call is refused.

`request_batch_approval` decides on a list of `ApprovalRequest`s at once. It raises
`ApprovalError` when the list is larger than `max_batch_size`.

## What this package does not do

- It holds no conversation loop. Nothing here talks to a chat provider, keeps
  history or runs the tool calls a model asks for. The `rubrduck.messages` types
  describe that traffic, but you drive it yourself.
- It has no shell-command tool. `rubrduck.risk` can judge the risk of a shell
  command, but the package cannot run one.
- It has no command-line program, server or terminal interface.

## Running the tests

```
pip install "rubrduck[test]"
pytest
```