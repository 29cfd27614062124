from __future__ import annotations

import secrets
import time
from pathlib import Path

from .exceptions import PathValidationError


def ensure_within(base_dir: Path, candidate: Path) -> Path:
    """Validate that *candidate* resides strictly inside *base_dir* and return it."""

    resolved_base = base_dir.resolve()
    resolved_candidate = candidate.resolve()
    if resolved_candidate != resolved_base and resolved_candidate.is_relative_to(resolved_base):
        return resolved_candidate
    raise PathValidationError(f"Path '{candidate.name}' escapes upload directory")


def resolve_upload_path(upload_dir: Path, filename: str) -> Path:
    """Resolve a stored file name against *upload_dir*; nested paths are refused."""

    if not filename or Path(filename).name != filename:
        raise PathValidationError()
    return ensure_within(upload_dir, upload_dir / filename)


def unique_upload_name(original_name: str) -> str:
    """Build ``<basename>-<epoch ms>-<random><ext>`` from a client-supplied name."""

    source = Path(Path(original_name or "upload").name)
    suffix = source.suffix.lower()
    stem = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in source.stem) or "upload"
    return f"{stem[:64]}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"
