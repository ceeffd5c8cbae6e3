# gloss_annote/persistence.py
from __future__ import annotations

import json
import os
import tempfile
from typing import Any, Dict, List

from .domain import Segment


# -----------------------------
# Atomic file helpers
# -----------------------------

def atomic_write_text(path: str, text: str, encoding: str = "utf-8") -> None:
    d = os.path.dirname(os.path.abspath(path))
    os.makedirs(d, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=d)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def atomic_write_json(path: str, payload: Any) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    atomic_write_text(path, text + "\n")


def read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def read_json_or(path: str, default: Any) -> Any:
    """Missing file -> default. A corrupt file still raises."""
    if not os.path.exists(path):
        return default
    return read_json(path)


# -----------------------------
# Annotation export / import files
# -----------------------------

def parse_annotation_list(payload: Any) -> List[Segment]:
    """
    Validates an exported annotation array (wire format) and decodes it.
    Raises ValueError on anything that is not a non-empty list of annotations.
    """
    if not isinstance(payload, list):
        raise ValueError("expected a JSON array of annotations")
    if not payload:
        raise ValueError("no annotations given")
    out: List[Segment] = []
    for i, d in enumerate(payload):
        if not isinstance(d, dict):
            raise ValueError(f"item {i} is not an object")
        try:
            out.append(Segment.from_dict(d))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"item {i} is not a valid annotation: {e}") from e
    return out


def export_annotations(path: str, segments: List[Segment]) -> str:
    """Writes segments as a JSON array in wire format. Returns the written path."""
    atomic_write_json(path, annotations_payload(segments))
    return path


def load_annotations_file(path: str) -> List[Segment]:
    try:
        payload = read_json(path)
    except json.JSONDecodeError as e:
        raise ValueError(f"not a valid JSON file: {e}") from e
    return parse_annotation_list(payload)


def default_export_filename(stamp: str) -> str:
    # ":" is not allowed in Windows file names
    return f"annotations_{stamp.replace(':', '-')}.json"


def annotations_payload(segments: List[Segment]) -> List[Dict]:
    return [s.to_dict() for s in segments]
