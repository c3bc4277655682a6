import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn

from testgen.services import batch
from testgen.services.component_analysis import AnalysisError
from testgen.services.test_generator import get_test_path, render_test_file, write_test_file


def _generate_one(file_path: str, analyzed, force: bool, to_stdout: bool) -> None:
    if to_stdout:
        print(render_test_file(file_path, analyzed))
        return

    written = write_test_file(file_path, analyzed, force=force)
    if written is None:
        print(f"⚠️  Test file already exists. Use --force to overwrite: {get_test_path(file_path)}")
    else:
        print(f"✅ Test file created: {written}")


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the CLI.

    - A file path: analyze the component and write its test file.
    - A directory: analyze every component below it and write one test each.
    Exits non-zero when analysis fails.
    """
    parser = argparse.ArgumentParser(
        prog="testgen",
        description="Generate a Vitest + Testing Library suite from a React component's source.",
    )
    parser.add_argument(
        "path",
        help="Component file, or a directory to scan for components.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing test files.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the analysis result as JSON.",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print generated tests instead of writing them.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Worker processes for directory scans (default: 4).",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    target_path = os.path.abspath(args.path)
    if not os.path.exists(target_path):
        raise SystemExit(f"Path does not exist: {target_path}")

    if os.path.isdir(target_path):
        print(f"📂 Scanning components under: {target_path}")
        items = batch.analyze_directory(Path(target_path), max_workers=args.workers)
        failures = 0
        for item in items:
            if item.error is not None:
                failures += 1
                print(f"❌ {item.path}: {item.error}", file=sys.stderr)
                continue
            if args.json:
                print(item.component.model_dump_json(indent=2, by_alias=True))
            try:
                _generate_one(item.path, item.component, args.force, args.stdout)
            except OSError as e:
                failures += 1
                print(f"❌ {item.path}: could not write test file: {e}", file=sys.stderr)
        print(f"🧩 {len(items) - failures}/{len(items)} components analyzed")
        if failures:
            raise SystemExit(1)
        return

    print(f"🧩 Analyzing component: {target_path}")
    try:
        analyzed = batch.get_analyzer().analyze_file(target_path)
    except AnalysisError as e:
        print(f"❌ {e}", file=sys.stderr)
        raise SystemExit(1)

    if args.json:
        print(analyzed.model_dump_json(indent=2, by_alias=True))
    try:
        _generate_one(target_path, analyzed, args.force, args.stdout)
    except OSError as e:
        print(f"❌ Could not write test file for {target_path}: {e}", file=sys.stderr)
        raise SystemExit(1)


def serve(argv: list[str] | None = None) -> None:
    """Start the analysis API server."""
    parser = argparse.ArgumentParser(
        prog="testgen-server",
        description="HTTP API for component analysis and test previews.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host interface to bind the server to (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the server on (default: 8000).",
    )
    args = parser.parse_args(argv)

    print(f"🚀 Starting server at http://{args.host}:{args.port}")
    print("   Press Ctrl+C to stop.")

    uvicorn.run(
        "testgen.main:app",
        host=args.host,
        port=args.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
