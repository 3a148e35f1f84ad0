"""Storage utilities for JSON files and spec documents."""

import json
import os
import tempfile
from pathlib import Path
from typing import Union
from pydantic import BaseModel
from datetime import datetime

from .errors import InputNotFound, InputUnreadable, WriteFailure


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles datetime objects."""

    def default(self, obj: object) -> str:
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def read_json(path: Path) -> dict:
    """Read a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed JSON object.
    """
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(path: Path, data: Union[dict, BaseModel]) -> None:
    """Write a JSON file.

    Args:
        path: Path to the JSON file.
        data: Dict or Pydantic model to write.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, cls=DateTimeEncoder)


def write_jsonl(path: Path, records: list[Union[dict, BaseModel]]) -> None:
    """Write records to a JSONL file (overwrites existing).

    Args:
        path: Path to the JSONL file.
        records: List of dicts or Pydantic models to write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        for record in records:
            if isinstance(record, BaseModel):
                f.write(record.model_dump_json() + '\n')
            else:
                f.write(json.dumps(record, cls=DateTimeEncoder) + '\n')


def read_text(path: Path) -> str:
    """Read a source, test or spec file.

    Raises:
        InputNotFound: If the path does not exist or is not a file.
        InputUnreadable: If the file cannot be read or is not valid UTF-8.
    """
    path = Path(path)
    if not path.is_file():
        raise InputNotFound(path)
    try:
        return path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise InputUnreadable(path, f"not valid UTF-8 (byte {e.start})") from e
    except OSError as e:
        raise InputUnreadable(path, e.strerror or str(e)) from e


def write_document(path: Path, content: str) -> None:
    """Write a fully composed document atomically.

    The content goes to a temporary file next to the destination, which is
    then moved over it, so readers never see a half-written document.

    Raises:
        WriteFailure: If the directory or file cannot be written.
    """
    path = Path(path)
    temp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            'w',
            encoding='utf-8',
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_name = handle.name
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        Path(temp_name).replace(path)
    except OSError as e:
        if temp_name is not None:
            Path(temp_name).unlink(missing_ok=True)
        raise WriteFailure(path, str(e)) from e
