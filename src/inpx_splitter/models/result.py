"""Data models for pipeline outcomes."""

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class PipelineStage(str, Enum):
    """Stages a variant passes through, in order."""

    INIT = "init"
    BUILT = "built"
    EXTRACTED = "extracted"
    COUNTED = "counted"
    HEADER_WRITTEN = "header_written"


class VariantResult(BaseModel):
    """Outcome of one variant's sub-pipeline."""

    tag: str
    archive_path: Path | None = None
    book_count: int | None = None
    status: Literal["pending", "done", "failed"] = "pending"
    stage: PipelineStage = PipelineStage.INIT
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    def fail(self, error: Exception | str) -> None:
        """Mark the variant failed, keeping the stage it reached."""
        self.status = "failed"
        self.error = str(error)


class RunSummary(BaseModel):
    """Final report covering every variant of a run."""

    source_path: Path
    results: list[VariantResult]
    interrupted: bool = False

    @property
    def succeeded(self) -> bool:
        return bool(self.results) and all(r.status == "done" for r in self.results)

    @property
    def exit_code(self) -> int:
        if self.interrupted:
            return 130
        return 0 if self.succeeded else 1
