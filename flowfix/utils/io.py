# flowfix/utils/io.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, IO, Tuple, Union

import yaml

PathLike = Union[str, Path]


class UnsupportedFormatError(ValueError):
    """The file extension is not one a workflow can be stored in."""


def _atomic_dump(path: PathLike, dump: Callable[[Any, IO[str]], None], data: Any) -> Path:
    """Write to ``<name>.tmp`` and then replace the target."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        dump(data, f)
    tmp.replace(p)
    return p


def read_json(path: PathLike) -> Any:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: PathLike, data: Any, indent: int = 2) -> Path:
    return _atomic_dump(path, lambda d, f: json.dump(d, f, ensure_ascii=False, indent=indent), data)


def read_yaml(path: PathLike) -> Any:
    with Path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_yaml(path: PathLike, data: Any) -> Path:
    # n8n exports are ordered (name, nodes, connections), keep it that way
    return _atomic_dump(path, lambda d, f: yaml.safe_dump(d, f, sort_keys=False, allow_unicode=True), data)


_FORMATS: Dict[str, Tuple[Callable[[PathLike], Any], Callable[[PathLike, Any], Path]]] = {
    ".json": (read_json, write_json),
    ".yaml": (read_yaml, write_yaml),
    ".yml": (read_yaml, write_yaml),
}

WORKFLOW_SUFFIXES = tuple(_FORMATS)


def _format_for(path: Path):
    fmt = _FORMATS.get(path.suffix.lower())
    if fmt is None:
        supported = ", ".join(sorted(_FORMATS))
        raise UnsupportedFormatError(f"Unsupported extension '{path.suffix}' for {path} (expected {supported})")
    return fmt


def load_workflow(path: PathLike) -> Any:
    """
    Read a workflow document, picking the parser from the extension
    (.json, .yaml or .yml). The result is returned as parsed; shape
    checks are the validator's job.
    """
    p = Path(path)
    reader, _ = _format_for(p)
    return reader(p)


def save_workflow(path: PathLike, workflow: Any) -> Path:
    p = Path(path)
    _, writer = _format_for(p)
    return writer(p, workflow)
