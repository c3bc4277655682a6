from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pathlib import Path
from typing import List

from testgen.models import AnalyzedComponent, BatchItem
from testgen.services import batch
from testgen.services.component_analysis import AnalysisError
from testgen.services.test_generator import render_test_file

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


def _analyze_component_file(path: str) -> AnalyzedComponent:
    file_path = Path(path)

    if not file_path.exists():
        raise HTTPException(status_code=404, detail="Path not found")

    if not file_path.is_file():
        raise HTTPException(status_code=400, detail="Path is not a file")

    try:
        return batch.get_analyzer().analyze_file(str(file_path.resolve()))
    except AnalysisError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/component", response_model=AnalyzedComponent)
async def get_component_analysis(path: str = Query(..., description="Path to the component source file")):
    """
    Statically analyze a single component file.
    """
    return _analyze_component_file(path)


@router.get("/component/test", response_class=PlainTextResponse)
async def get_component_test(path: str = Query(..., description="Path to the component source file")):
    """
    Preview the generated test file for a component without writing it.
    """
    analyzed = _analyze_component_file(path)
    return render_test_file(str(Path(path).resolve()), analyzed)


@router.get("/batch", response_model=List[BatchItem])
async def get_batch_analysis(
    path: str = Query(..., description="Directory to scan for components"),
    workers: int = Query(1, ge=1, le=32),
):
    """
    Analyze every component file under a directory. Per-file failures are
    reported in the item's `error` field.
    """
    root = Path(path)
    if not root.exists():
        raise HTTPException(status_code=404, detail="Path not found")
    if not root.is_dir():
        raise HTTPException(status_code=400, detail="Path is not a directory")

    return batch.analyze_directory(root, max_workers=workers)
