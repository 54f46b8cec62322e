"""Tests for writing generated files to disk."""
import tempfile
from pathlib import Path

import pytest

from app.generators.codegen.types import GeneratedFile
from app.generators.codegen.writer import write_files


def test_write_files_creates_parent_directories():
    """Test that nested paths are written with their directories created."""
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = Path(temp_dir) / "out"
        write_files([
            GeneratedFile(path="package.json", content="{}\n"),
            GeneratedFile(path="src/entities/__tests__/task.service.test.ts", content="// test\n"),
        ], out_dir)

        assert (out_dir / "package.json").read_text(encoding="utf-8") == "{}\n"
        nested = out_dir / "src" / "entities" / "__tests__" / "task.service.test.ts"
        assert nested.exists(), "Nested file should be created"
        assert nested.read_text(encoding="utf-8") == "// test\n"


def test_write_files_rejects_escaping_paths():
    with tempfile.TemporaryDirectory() as temp_dir:
        with pytest.raises(ValueError):
            write_files([GeneratedFile(path="../evil.txt", content="x")], Path(temp_dir) / "out")
