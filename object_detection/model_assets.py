import hashlib
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from urllib.request import urlopen

from loguru import logger

DARKNET_RAW = "https://raw.githubusercontent.com/pjreddie/darknet/master"
CHUNK_SIZE = 1024 * 1024


@dataclass
class ModelFile:
    key: str
    filename: str
    url: str


YOLOV3_FILES = [
    ModelFile("cfg", "yolov3.cfg", f"{DARKNET_RAW}/cfg/yolov3.cfg"),
    ModelFile("weights", "yolov3.weights", "https://pjreddie.com/media/files/yolov3.weights"),
    ModelFile("labels", "coco.names", f"{DARKNET_RAW}/data/coco.names"),
]


def parse_checksums(values: Optional[Iterable[str]], files: Iterable[ModelFile] = YOLOV3_FILES) -> Dict[str, str]:
    """Turn `key=digest` strings into a key -> lowercase hex digest mapping."""
    known = {entry.key for entry in files}
    checksums: Dict[str, str] = {}
    for value in values or ():
        key, sep, digest = value.partition("=")
        key = key.strip()
        digest = digest.strip().lower().removeprefix("sha256:")
        if not sep or not digest:
            raise ValueError(f"Expected key=digest, got {value!r}")
        if key not in known:
            raise ValueError(f"Unknown model file key {key!r}; expected one of {sorted(known)}")
        checksums[key] = digest
    return checksums


def file_digest(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def fetch(entry: ModelFile, dest: Path, timeout_seconds: float = 60.0) -> None:
    """Download one model file next to its destination, then move it into place."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    part = dest.with_name(dest.name + ".part")

    logger.info(f"Downloading {entry.url} -> {dest}")
    try:
        with urlopen(entry.url, timeout=timeout_seconds) as response, part.open("wb") as handle:
            shutil.copyfileobj(response, handle, CHUNK_SIZE)
    except OSError:
        part.unlink(missing_ok=True)
        raise
    os.replace(part, dest)


def ensure_model_files(
    model_dir: Path,
    files: Iterable[ModelFile] = YOLOV3_FILES,
    download: bool = False,
    overwrite: bool = False,
    timeout_seconds: float = 60.0,
    checksums: Optional[Dict[str, str]] = None,
) -> List[Path]:
    """
    Check that every model file is present, fetching it when allowed.

    Args:
        model_dir: Directory the files live in
        files: Files to check
        download: Fetch files that are missing
        overwrite: Re-fetch files that exist; only used with download
        timeout_seconds: Per-file download timeout
        checksums: Expected SHA-256 per file key; files without one are not verified

    Returns:
        Local paths in the order of `files`
    """
    model_dir = Path(model_dir)
    checksums = checksums or {}
    resolved = []
    for entry in files:
        path = model_dir / entry.filename
        fetched = False
        if download and (overwrite or not path.exists()):
            fetch(entry, path, timeout_seconds=timeout_seconds)
            fetched = True
        elif not path.exists():
            raise FileNotFoundError(path)

        expected = checksums.get(entry.key)
        if expected:
            if file_digest(path) != expected:
                if fetched:
                    path.unlink()
                raise RuntimeError(f"SHA256 mismatch for {path}")
            logger.info(f"Verified {path}")
        resolved.append(path)
    return resolved
