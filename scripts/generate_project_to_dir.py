#!/usr/bin/env python3
"""
Script to generate a stored project's backend into a directory for inspection.
Usage: python scripts/generate_project_to_dir.py PROJECT_ID [OUT_DIR] [--zip]
"""
import sys
from pathlib import Path

from app.core.config import settings
from app.core.errors import ProjectNotFound
from app.core.logging import configure_logging
from app.db.repository import SqlProjectLoader
from app.db.session import SessionLocal
from app.generators.codegen.generator import generate_project
from app.generators.codegen.renderer import TemplateRenderer
from app.generators.codegen.sinks import summarize_files, write_zip
from app.generators.codegen.writer import write_files


def main(argv) -> int:
    args = [a for a in argv if not a.startswith("--")]
    if not args:
        print(__doc__)
        return 2

    project_id = args[0]
    out_dir = Path(args[1]) if len(args) > 1 else Path(__file__).parent.parent / "test_output" / project_id

    configure_logging(settings.log_level)
    renderer = TemplateRenderer(settings.templates_dir)

    db = SessionLocal()
    try:
        files = generate_project(project_id, SqlProjectLoader(db), renderer)
    except ProjectNotFound:
        print(f"Error: project {project_id} not found")
        return 1
    finally:
        db.close()

    if "--zip" in argv:
        out_dir.parent.mkdir(parents=True, exist_ok=True)
        zip_path = out_dir.with_suffix(".zip")
        with open(zip_path, "wb") as f:
            size = write_zip(files, f, compresslevel=settings.archive_compress_level)
        print(f"Wrote {zip_path} ({size} bytes)")
    else:
        write_files(files, out_dir)
        print(f"Wrote {len(files)} files to {out_dir}")

    for entry in summarize_files(files)["files"]:
        print(f"  {entry['path']} ({entry['size']} bytes)")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
