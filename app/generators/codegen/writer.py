"""File writer for generated projects."""
from pathlib import Path
from typing import List

from app.generators.codegen.types import GeneratedFile


def write_files(files: List[GeneratedFile], out_dir: Path) -> None:
    """
    Write generated files to the output directory.

    Args:
        files: List of GeneratedFile objects to write
        out_dir: Base output directory path

    Raises:
        ValueError: a file path escapes the output directory
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    root = out_dir.resolve()

    for file in files:
        file_path = (out_dir / file.path).resolve()
        if root not in file_path.parents:
            raise ValueError(f"Refusing to write outside {out_dir}: {file.path}")
        # Create parent directories if needed
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(file.content, encoding="utf-8")
