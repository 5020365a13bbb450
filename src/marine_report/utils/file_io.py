"""File I/O utilities for Marine Report."""
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Union

import aiofiles

logger = logging.getLogger("utils.file_io")


def ensure_dir(path: Union[str, Path]) -> Path:
    """
    Ensure that a directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        Path object for the directory
    """
    path_obj = Path(path)
    path_obj.mkdir(parents=True, exist_ok=True)
    return path_obj


async def read_json(path: Union[str, Path]) -> Any:
    """
    Read and decode a JSON file asynchronously.

    Args:
        path: Path to the file

    Returns:
        Decoded JSON data

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    async with aiofiles.open(Path(path), "r", encoding="utf-8") as f:
        return json.loads(await f.read())


async def write_json(path: Union[str, Path], data: Any) -> None:
    """
    Write JSON to a file asynchronously, replacing it atomically.

    The data is written to a temporary sibling first and moved into place,
    so readers see either the old or the new content.

    Args:
        path: Path to the file
        data: JSON-serializable data
    """
    path_obj = Path(path)
    ensure_dir(path_obj.parent)

    content = json.dumps(data, indent=2, sort_keys=True)
    tmp_path = path_obj.with_name(f".{path_obj.name}.{uuid.uuid4().hex}.tmp")
    try:
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(content)
        os.replace(tmp_path, path_obj)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

    logger.debug(f"Wrote {path_obj}")
