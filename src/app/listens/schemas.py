"""Request and response models for listen import and export endpoints."""

from typing import Any, Literal

from pydantic import BaseModel

from scrobbles.importing.models import ImportMode, ImportResult, MetadataSource


class ImportRequest(BaseModel):
    """JSON import body, ListenBrainz ``import`` submission shape."""

    listen_type: Literal["import"] = "import"
    metadata_source: MetadataSource = MetadataSource.ORIGINAL
    import_mode: ImportMode = ImportMode.SKIP
    deduplicate: bool = True
    payload: list[Any]


class ImportResponse(BaseModel):
    status: Literal["ok"] = "ok"
    stats: ImportResult
    message: str | None = None


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str


class RecentListensResponse(BaseModel):
    user_name: str
    count: int
    listens: list[dict[str, Any]]  # wire shape, newest first
