import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api.deps import get_current_user_id, get_renderer
from app.core.config import settings
from app.core.errors import ProjectNotFound
from app.db.repository import SqlProjectLoader, load_project_snapshot
from app.db.session import get_db
from app.generators.codegen.generator import generate_project
from app.generators.codegen.helpers import kebab_case
from app.generators.codegen.renderer import TemplateRenderer
from app.generators.codegen.sinks import iter_zip_stream, preview_files, summarize_files
from app.schemas.code import GenerateResponse, PreviewResponse

log = logging.getLogger(__name__)

router = APIRouter(prefix="/code")


def archive_filename(project_name: str) -> str:
    """Project name made safe for a quoted Content-Disposition filename."""
    name = "".join(ch for ch in project_name if ch not in '"\\\r\n').strip()
    try:
        name.encode("latin-1")
    except UnicodeEncodeError:
        name = kebab_case(project_name)
    return f"{name or 'project'}.zip"


@router.post("/generate/{project_id}", response_model=GenerateResponse)
def generate_code(
    project_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    files = generate_project(project_id, SqlProjectLoader(db, user_id), renderer)
    summary = summarize_files(files)
    return GenerateResponse(
        message="Code generated successfully",
        file_count=summary["fileCount"],
        files=summary["files"],
    )


@router.get("/preview/{project_id}", response_model=PreviewResponse)
def preview_code(
    project_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    files = generate_project(project_id, SqlProjectLoader(db, user_id), renderer)
    return PreviewResponse(files=preview_files(files))


@router.get("/download/{project_id}")
def download_code(
    project_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    renderer: TemplateRenderer = Depends(get_renderer),
):
    project = load_project_snapshot(db, project_id, user_id)
    if project is None:
        raise ProjectNotFound(project_id)

    files = generate_project(project_id, lambda _: project, renderer)
    log.info("Streaming archive of %d files", len(files), extra={"project_id": project_id, "component": "-"})
    return StreamingResponse(
        iter_zip_stream(files, compresslevel=settings.archive_compress_level),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{archive_filename(project.name)}"'},
    )
