import concurrent.futures
import logging
import os
from pathlib import Path
from typing import List, Union

from pathspec import PathSpec

from testgen.config import COMPONENT_EXTENSIONS, IGNORE_DIRS, TEST_DIR_NAME
from testgen.models import AnalyzedComponent, BatchItem
from testgen.services.component_analysis import AnalysisError, ComponentAnalyzer

logger = logging.getLogger(__name__)

_analyzer = None


def get_analyzer() -> ComponentAnalyzer:
    global _analyzer
    if _analyzer is None:
        _analyzer = ComponentAnalyzer()
    return _analyzer


def find_repo_root(start_path: Path) -> Path:
    current = start_path.resolve()
    for parent in [current, *current.parents]:
        if (parent / ".git").exists():
            return parent
    return current


def _translate_gitignore_pattern(raw_line: str, base_rel: str) -> str | None:
    """
    Translate a single .gitignore pattern that lives in a directory `base_rel`
    (relative to the repo root) into a repo-root-relative gitwildmatch pattern.

    Handles negation (`!`), anchoring (`/` prefix) and bare names that
    match anywhere below the .gitignore's directory.
    """
    line = raw_line.rstrip("\n")
    if not line or line.lstrip().startswith("#"):
        return None

    negated = line.startswith("!")
    body = line[1:] if negated else line

    anchored = body.startswith("/")
    if anchored:
        body = body[1:]

    prefix = f"{base_rel}/" if base_rel else ""

    # A slash anywhere but the end anchors the pattern to the .gitignore's directory
    if anchored or "/" in body.rstrip("/"):
        pat = f"/{prefix}{body}"
    elif base_rel:
        pat = f"{base_rel}/**/{body}"
    else:
        pat = f"**/{body}"

    return f"!{pat}" if negated else pat


def _load_gitignore_spec(root_path: Path) -> tuple[Path, PathSpec | None]:
    """
    Collect .gitignore rules visible from `root_path`, nested files included,
    as one PathSpec relative to the repository root.
    """
    repo_root = find_repo_root(root_path)
    all_patterns: list[str] = []

    for dirpath, dirnames, filenames in os.walk(repo_root):
        dirnames[:] = [d for d in dirnames if d not in IGNORE_DIRS]

        if ".gitignore" not in filenames:
            continue

        base_rel = Path(dirpath).relative_to(repo_root).as_posix()
        if base_rel == ".":
            base_rel = ""

        with open(Path(dirpath) / ".gitignore", "r", encoding="utf-8", errors="replace") as f:
            for raw in f:
                translated = _translate_gitignore_pattern(raw, base_rel)
                if translated is not None:
                    all_patterns.append(translated)

    if not all_patterns:
        return repo_root, None

    return repo_root, PathSpec.from_lines("gitwildmatch", all_patterns)


def _is_gitignored(path: Path, ignore_root: Path, spec: PathSpec | None) -> bool:
    if spec is None:
        return False
    try:
        rel = path.relative_to(ignore_root)
    except ValueError:
        rel = path
    rel_str = rel.as_posix()
    if path.is_dir():
        rel_str += "/"
    return spec.match_file(rel_str)


def is_component_file(path: Path) -> bool:
    name = path.name
    if path.suffix not in COMPONENT_EXTENSIONS or name.endswith(".d.ts"):
        return False
    # Existing tests are never components under test
    return ".test." not in name and ".spec." not in name


def discover_component_files(root_path: Path) -> List[str]:
    root_path = root_path.resolve()
    ignore_root, gitignore_spec = _load_gitignore_spec(root_path)
    found: List[str] = []

    for root_dir, dirs, files in os.walk(root_path):
        root_dir_path = Path(root_dir)
        dirs[:] = sorted(
            d for d in dirs
            if d not in IGNORE_DIRS
            and d != TEST_DIR_NAME
            and not _is_gitignored(root_dir_path / d, ignore_root, gitignore_spec)
        )

        for file in sorted(files):
            file_path = root_dir_path / file
            if not is_component_file(file_path):
                continue
            if _is_gitignored(file_path, ignore_root, gitignore_spec):
                continue
            found.append(str(file_path))

    return found


def analyze_single_file(file_path: str) -> Union[AnalyzedComponent, dict]:
    """
    Analyze one file, returning an error dict instead of raising.
    Must be top-level for multiprocessing pickling.
    """
    try:
        return get_analyzer().analyze_file(file_path)
    except AnalysisError as e:
        return {"error": e.cause, "filename": file_path}
    except Exception as e:
        logger.exception("Unexpected failure analyzing %s", file_path)
        return {"error": str(e), "filename": file_path}


def _run_file_analyses(files: List[str], max_workers: int) -> dict:
    if max_workers <= 1:
        return {f: analyze_single_file(f) for f in files}

    results = {}
    with concurrent.futures.ProcessPoolExecutor(max_workers=max_workers) as executor:
        future_to_file = {executor.submit(analyze_single_file, f): f for f in files}
        for future in concurrent.futures.as_completed(future_to_file):
            file = future_to_file[future]
            try:
                results[file] = future.result()
            except Exception as exc:
                # A worker process died; report it against this file only.
                results[file] = {"error": str(exc), "filename": file}
    return results


def analyze_directory(root_path: Path, max_workers: int = 4) -> List[BatchItem]:
    """Analyze every component file under `root_path`, one unit of work per file."""
    files = discover_component_files(root_path)
    logger.info("Analyzing %d component files under %s", len(files), root_path)

    results = _run_file_analyses(files, max_workers)

    items: List[BatchItem] = []
    for file in sorted(results):
        result = results[file]
        if isinstance(result, dict) and "error" in result:
            logger.warning("Skipping %s: %s", file, result["error"])
            items.append(BatchItem(path=file, error=result["error"]))
        else:
            items.append(BatchItem(path=file, component=result))
    return items
