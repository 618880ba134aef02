import json
import os
import stat

import pytest

from rubrduck.messages import ToolError
from rubrduck.tools.files import FileTool, format_file_size


@pytest.fixture
def tool(tmp_path):
    return FileTool(str(tmp_path))


def test_read_file(tool, tmp_path):
    content = "Hello, World!\nThis is a test file."
    (tmp_path / "test.txt").write_text(content)
    result = tool.execute('{"type": "read", "path": "test.txt"}')
    assert content in result


def test_write_file(tool, tmp_path):
    result = tool.execute(
        '{"type": "write", "path": "newfile.txt", "content": "New file content"}'
    )
    assert "Successfully wrote" in result
    assert (tmp_path / "newfile.txt").read_text() == "New file content"


def test_write_creates_directories(tool, tmp_path):
    args = json.dumps({"type": "write", "path": "a/b/c.txt", "content": "x"})
    result = tool.execute(args)
    assert "Successfully wrote 1 bytes" in result
    assert (tmp_path / "a" / "b" / "c.txt").read_text() == "x"


def test_write_then_read_round_trip(tool):
    text = "line one\nline two\n"
    tool.execute(json.dumps({"type": "write", "path": "r.txt", "content": text}))
    assert tool.execute(json.dumps({"type": "read", "path": "r.txt"})) == text


def test_write_rejects_very_large_content(tool, tmp_path):
    args = json.dumps({"type": "write", "path": "big.txt", "content": "A" * (300 * 1024)})
    with pytest.raises(ToolError, match="too large"):
        tool.execute(args)
    assert not (tmp_path / "big.txt").exists()


def test_write_large_content_reports_kilobytes(tool, tmp_path):
    args = json.dumps({"type": "write", "path": "mid.txt", "content": "A" * (100 * 1024)})
    result = tool.execute(args)
    assert "Successfully wrote 100 KB" in result
    assert (tmp_path / "mid.txt").stat().st_size == 100 * 1024


def test_write_read_only_file(tool, tmp_path):
    target = tmp_path / "locked.txt"
    target.write_text("original")
    target.chmod(stat.S_IRUSR)
    try:
        with pytest.raises(ToolError, match="file is read-only"):
            tool.execute(json.dumps({"type": "write", "path": "locked.txt", "content": "new"}))
    finally:
        target.chmod(stat.S_IRUSR | stat.S_IWUSR)
    assert target.read_text() == "original"


def test_append_file(tool, tmp_path):
    (tmp_path / "log.txt").write_text("first\n")
    result = tool.execute(json.dumps({"type": "append", "path": "log.txt", "content": "second\n"}))
    assert "Successfully appended 7 bytes" in result
    assert (tmp_path / "log.txt").read_text() == "first\nsecond\n"


def test_list_directory(tool, tmp_path):
    (tmp_path / "file1.txt").write_text("test")
    (tmp_path / "file2.txt").write_text("test")
    (tmp_path / "dir1").mkdir()
    result = tool.execute('{"type": "list", "path": ".", "max_results": 10}')
    assert "file1.txt" in result
    assert "file2.txt" in result
    assert "dir1" in result
    assert "<DIR>" in result


def test_list_directory_truncates(tool, tmp_path):
    for name in ("a.txt", "b.txt", "c.txt"):
        (tmp_path / name).write_text("x")
    result = tool.execute('{"type": "list", "path": ".", "max_results": 2}')
    assert "a.txt" in result
    assert "c.txt" not in result
    assert "... and 1 more entries" in result


def test_search_files(tool, tmp_path):
    for name in ("test1.txt", "test2.txt", "other.txt", "subdir/test3.txt"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("test")
    result = tool.execute(
        '{"type": "search", "path": ".", "pattern": "test", "max_results": 10}'
    )
    assert "test1.txt" in result
    assert "test2.txt" in result
    assert "test3.txt" in result
    assert "other.txt" not in result


def test_search_skips_hidden_and_respects_limit(tool, tmp_path):
    (tmp_path / ".hidden").mkdir()
    (tmp_path / ".hidden" / "test_hidden.txt").write_text("x")
    for name in ("test_a.txt", "test_b.txt", "test_c.txt"):
        (tmp_path / name).write_text("x")
    result = tool.execute('{"type": "search", "path": ".", "pattern": "TEST", "max_results": 2}')
    assert "test_hidden" not in result
    assert result.count("\n- ") == 2


def test_search_no_match(tool):
    result = tool.execute('{"type": "search", "path": ".", "pattern": "nothing"}')
    assert result.startswith("No files found matching pattern 'nothing'")


def test_path_sanitization(tool):
    with pytest.raises(ToolError, match="path outside project bounds"):
        tool.execute('{"type": "read", "path": "../../../etc/passwd"}')
    with pytest.raises(ToolError, match="path outside project bounds"):
        tool.execute('{"type": "read", "path": "/etc/passwd"}')


def test_absolute_path_inside_base_is_allowed(tool, tmp_path):
    (tmp_path / "inside.txt").write_text("inside")
    args = json.dumps({"type": "read", "path": os.path.join(str(tmp_path), "inside.txt")})
    assert tool.execute(args) == "inside"


def test_large_file_handling(tool, tmp_path):
    (tmp_path / "large.txt").write_bytes(b"A" * (2 * 1024 * 1024))
    result = tool.execute('{"type": "read", "path": "large.txt"}')
    assert "File too large" in result
    assert "Showing first 1KB" in result


def test_invalid_arguments(tool):
    with pytest.raises(ToolError, match="invalid arguments"):
        tool.execute("invalid json")
    with pytest.raises(ToolError, match="unknown operation type"):
        tool.execute('{"type": "unknown", "path": "test.txt"}')
    with pytest.raises(ToolError, match="search pattern is required"):
        tool.execute('{"type": "search", "path": "."}')


def test_read_missing_file(tool):
    with pytest.raises(ToolError, match="failed to read file"):
        tool.execute('{"type": "read", "path": "missing.txt"}')


def test_definition():
    definition = FileTool("/tmp").definition()
    assert definition.type == "function"
    assert definition.name == "file_operations"
    assert "file system operations" in definition.description
    properties = definition.parameters["properties"]
    for key in ("type", "path", "content", "pattern", "max_results"):
        assert key in properties


@pytest.mark.parametrize(
    "size, expected",
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.0 KB"),
        (1024 * 1024, "1.0 MB"),
        (1024 * 1024 * 1024, "1.0 GB"),
        (1500, "1.5 KB"),
    ],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected