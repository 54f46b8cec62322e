"""Output forms for a generated file list: preview, summary, zip archive."""
import io
import logging
import zipfile
from typing import Any, BinaryIO, Dict, Iterable, Iterator, List

from app.core.errors import ArchiveWriteFailure
from app.generators.codegen.types import GeneratedFile

log = logging.getLogger(__name__)

# Fixed entry timestamp so identical inputs give identical archives
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def preview_files(files: List[GeneratedFile]) -> List[Dict[str, str]]:
    return [{"path": f.path, "content": f.content} for f in files]


def summarize_files(files: List[GeneratedFile]) -> Dict[str, Any]:
    """File count plus each path with its UTF-8 encoded size in bytes."""
    return {
        "fileCount": len(files),
        "files": [{"path": f.path, "size": len(f.content.encode("utf-8"))} for f in files],
    }


class _ChunkBuffer(io.RawIOBase):
    """Unseekable sink that hands written bytes back in chunks."""

    def __init__(self):
        self._chunks: List[bytes] = []

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def _zip_info(path: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(filename=path, date_time=ZIP_EPOCH)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info


def iter_zip_stream(files: Iterable[GeneratedFile], compresslevel: int = 9) -> Iterator[bytes]:
    """
    Yield a deflate-compressed zip archive of ``files`` chunk by chunk.

    Each file becomes one entry at its relative path; directories are
    implied by the entry paths and never written as entries of their own.

    Args:
        files: Files to archive
        compresslevel: zlib compression level, 0-9

    Yields:
        Archive bytes, one chunk per entry plus the central directory
    """
    buffer = _ChunkBuffer()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED, compresslevel=compresslevel) as archive:
        for file in files:
            archive.writestr(_zip_info(file.path), file.content.encode("utf-8"), compresslevel=compresslevel)
            chunk = buffer.drain()
            if chunk:
                yield chunk
    tail = buffer.drain()
    if tail:
        yield tail


def write_zip(files: Iterable[GeneratedFile], destination: BinaryIO, compresslevel: int = 9) -> int:
    """
    Write the archive to a binary stream.

    Returns:
        Number of bytes written

    Raises:
        ArchiveWriteFailure: the destination rejected a write
    """
    written = 0
    try:
        for chunk in iter_zip_stream(files, compresslevel=compresslevel):
            destination.write(chunk)
            written += len(chunk)
    except OSError as e:
        log.error("Archive write failed after %d bytes: %s", written, e, extra={"project_id": "-", "component": "-"})
        raise ArchiveWriteFailure(str(e)) from e
    return written


def build_zip(files: Iterable[GeneratedFile], compresslevel: int = 9) -> bytes:
    """Whole archive in memory."""
    return b"".join(iter_zip_stream(files, compresslevel=compresslevel))
