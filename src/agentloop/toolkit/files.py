"""Built-in file tools: read, list, create, and edit files under a root directory.

Each tool pairs a pydantic argument model (explicit fields, no extra keys)
with a handler bound to a specific root directory.  Handlers raise
ToolExecutionError or OSError on failure; ToolDefinition.call() turns those
into FAILED results.
"""

from __future__ import annotations

import ast
import logging
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from agentloop.exceptions import ToolExecutionError
from agentloop.toolkit.models import ToolDefinition

logger = logging.getLogger(__name__)

# Directories never walked by list_files.
SKIP_DIRS = frozenset({".git", ".venv", "vendor", ".idea", ".vscode", "zarf", "__pycache__"})


class _Args(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ReadFileArgs(_Args):
    path: str = Field(
        description="The relative path of a file in the working directory.",
    )


class ListFilesArgs(_Args):
    path: str = Field(
        default=".",
        description="Relative path to list files from. Defaults to current directory if not provided.",
    )
    extension: str = Field(
        default="",
        description=(
            "The file extension to filter by. If not provided, will list all files. "
            "If provided, will only list files with the given extension."
        ),
    )


class CreateFileArgs(_Args):
    path: str = Field(description="The path to the file")


class EditFileArgs(_Args):
    path: str = Field(description="The path to the source file")
    line_number: int = Field(description="The line number for the change, starting at 1")
    type_change: Literal["add", "replace", "delete"] = Field(
        description="The type of change to make: add, replace, delete",
    )
    line_change: str = Field(
        default="",
        description="The text to add or replace; ignored for delete",
    )

    @field_validator("type_change", mode="before")
    @classmethod
    def _normalize_change(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


def _resolve(root: Path, path: str) -> Path:
    """Resolve ``path`` against ``root``, refusing paths that leave it."""
    target = (root / (path or ".")).resolve()
    if target != root and root not in target.parents:
        raise ToolExecutionError(f"path is outside the working directory: {path}")
    return target


def _read_file(root: Path, args: ReadFileArgs) -> dict:
    target = _resolve(root, args.path)
    return {"file_contents": target.read_text(encoding="utf-8")}


def _list_files(root: Path, args: ListFilesArgs) -> dict:
    base = _resolve(root, args.path)
    if not base.is_dir():
        raise ToolExecutionError(f"not a directory: {args.path}")

    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        rel_dir = Path(dirpath).relative_to(base)
        for d in dirnames:
            files.append((rel_dir / d).as_posix() + "/")
        for name in sorted(filenames):
            if args.extension and not name.endswith(args.extension):
                continue
            files.append((rel_dir / name).as_posix())
    return {"files": files}


def _create_file(root: Path, args: CreateFileArgs) -> dict:
    target = _resolve(root, args.path)
    if target.exists():
        raise ToolExecutionError("file already exists")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.touch()
    return {"message": "File created successfully"}


def _edit_file(root: Path, args: EditFileArgs) -> dict:
    target = _resolve(root, args.path)
    lines = target.read_text(encoding="utf-8").split("\n")
    number = args.line_number

    if number < 1 or number > len(lines):
        raise ToolExecutionError(
            f"line number {number} is out of range (1-{len(lines)})"
        )

    change = args.line_change.rstrip("\r\n")
    if args.type_change == "add":
        lines.insert(number - 1, change)
        action = f"Added line at position {number}"
    elif args.type_change == "replace":
        lines[number - 1] = change
        action = f"Replaced line {number}"
    else:
        if len(lines) == 1:
            lines = [""]
        else:
            del lines[number - 1]
        action = f"Deleted line {number}"

    modified = "\n".join(lines)
    if target.suffix == ".py":
        try:
            ast.parse(modified, filename=str(target))
        except SyntaxError as exc:
            raise ToolExecutionError(
                f"syntax error after modification: {exc.msg} (line {exc.lineno}), "
                "please inform the user"
            ) from exc

    target.write_text(modified, encoding="utf-8")
    logger.debug("%s in %s", action, target)
    return {"message": action}


def get_file_tools(root: str | os.PathLike[str] = ".") -> list[ToolDefinition]:
    """Build the file tool definitions bound to ``root``.

    Each call returns fresh handlers bound to the resolved root directory.

    Args:
        root: Directory the tools operate in; paths the model passes are
            relative to it and may not escape it.

    Returns:
        ToolDefinitions for read_file, list_files, create_file, edit_file.
    """
    base = Path(root).resolve()
    return [
        ToolDefinition(
            name="read_file",
            description=(
                "Read the contents of a given file path. Use this when you want "
                "to see what's inside a file."
            ),
            arguments=ReadFileArgs,
            handler=lambda args: _read_file(base, args),
        ),
        ToolDefinition(
            name="list_files",
            description=(
                "List files and directories at a given path. If no path is "
                "provided, lists files in the current directory."
            ),
            arguments=ListFilesArgs,
            handler=lambda args: _list_files(base, args),
        ),
        ToolDefinition(
            name="create_file",
            description="Create a new, empty file. Fails if the file already exists.",
            arguments=CreateFileArgs,
            handler=lambda args: _create_file(base, args),
        ),
        ToolDefinition(
            name="edit_file",
            description=(
                "Edit a text or source code file by adding, replacing, or deleting "
                "a single line. Python files are syntax-checked before saving."
            ),
            arguments=EditFileArgs,
            handler=lambda args: _edit_file(base, args),
        ),
    ]
