import argparse
import sys
from pathlib import Path

from object_detection.model_assets import YOLOV3_FILES, ensure_model_files, parse_checksums
from object_detection.utils.logging import setup_logging


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Download/verify YOLOv3 model assets")
    parser.add_argument("--file", action="append", dest="files", help="File key: cfg, weights or labels (repeatable)")
    parser.add_argument("--download", action="store_true", help="Download missing files")
    parser.add_argument("--overwrite", action="store_true", help="Re-download existing files (with --download)")
    parser.add_argument(
        "--sha256",
        action="append",
        metavar="KEY=DIGEST",
        help="Expected SHA-256 for a file key, e.g. weights=<hex> (repeatable)",
    )
    parser.add_argument("--timeout", type=float, default=60.0, help="Download timeout seconds")
    parser.add_argument("--models-dir", default="detection", help="Path to models directory")
    parser.add_argument("--list", action="store_true", help="List known files and exit")
    parser.add_argument("--log-level", default="INFO", help="Log level")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    setup_logging(args.log_level)

    if args.list:
        for entry in YOLOV3_FILES:
            print(f"  {entry.key}: {entry.filename} <- {entry.url}")
        return

    files = YOLOV3_FILES
    if args.files:
        files = [entry for entry in YOLOV3_FILES if entry.key in set(args.files)]
        if not files:
            print(f"No known files among: {', '.join(args.files)}", file=sys.stderr)
            raise SystemExit(1)

    try:
        checksums = parse_checksums(args.sha256)
        paths = ensure_model_files(
            Path(args.models_dir),
            files=files,
            download=args.download,
            overwrite=args.overwrite,
            timeout_seconds=args.timeout,
            checksums=checksums,
        )
    except FileNotFoundError as exc:
        print(f"Missing {exc}; rerun with --download", file=sys.stderr)
        raise SystemExit(1)
    except (ValueError, RuntimeError, OSError) as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1)

    for path in paths:
        print(path)


if __name__ == "__main__":
    main()
