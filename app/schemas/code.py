from typing import List

from pydantic import BaseModel, ConfigDict, Field


class FileSummary(BaseModel):
    path: str
    size: int


class FilePreview(BaseModel):
    path: str
    content: str


class GenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    file_count: int = Field(..., alias="fileCount")
    files: List[FileSummary]


class PreviewResponse(BaseModel):
    files: List[FilePreview]
