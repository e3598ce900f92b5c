"""Listen import, export and recent-listens endpoints: class-based router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Form, Query, Response, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import DEFAULT_RECENT_LISTENS_COUNT, MAX_RECENT_LISTENS_COUNT, UPLOAD_CHUNK_SIZE
from app.dependencies import db_manager, get_enricher, get_engine, get_push_hub
from app.listens.schemas import ErrorResponse, ImportRequest, ImportResponse, RecentListensResponse
from app.listens.service import ListensService
from app.settings import AppSettings, get_settings
from scrobbles.aggregation.engine import AggregationEngine
from scrobbles.aggregation.windows import TimeRange
from scrobbles.enrichment.client import MetadataEnricher
from scrobbles.export import MEDIA_TYPES, ExportFormat
from scrobbles.importing.exceptions import ImportPipelineError, TransportFailureError
from scrobbles.importing.models import ImportBatch, ImportMode, MetadataSource, SourceFormat
from scrobbles.importing.validator import ValidationResult, load_import_file, validate_import_file
from scrobbles.push import NEW_SCROBBLE_EVENT, PushHub

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


async def _read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read an upload in chunks, stopping once it is past the size limit."""
    chunks: list[bytes] = []
    total_size = 0
    while chunk := await file.read(UPLOAD_CHUNK_SIZE):
        chunks.append(chunk)
        total_size += len(chunk)
        if total_size > max_bytes:
            break
    return b"".join(chunks)


class ListensRouter:
    """Class-based router for listen import and export endpoints."""

    def __init__(self) -> None:
        self._service = ListensService()
        self.router = APIRouter()
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        error_responses = {
            400: {"model": ErrorResponse},
            503: {"model": ErrorResponse},
        }
        r.add_api_route(
            "/import/{user_name}",
            self.import_listens,
            methods=["POST"],
            response_model=ImportResponse,
            responses=error_responses,
        )
        r.add_api_route(
            "/import/{user_name}/file",
            self.import_file,
            methods=["POST"],
            response_model=ImportResponse,
            responses=error_responses,
        )
        r.add_api_route(
            "/import/{user_name}/validate",
            self.validate_file,
            methods=["POST"],
            response_model=ValidationResult,
        )
        r.add_api_route(
            "/export/{user_name}",
            self.export,
            methods=["GET"],
            response_class=Response,
            responses={503: {"model": ErrorResponse}},
        )
        r.add_api_route(
            "/user/{user_name}/recent-listens",
            self.recent_listens,
            methods=["GET"],
            response_model=RecentListensResponse,
            responses={503: {"model": ErrorResponse}},
        )

    async def _run_import(
        self,
        batch: ImportBatch,
        user_name: str,
        session: AsyncSession,
        settings: AppSettings,
        enricher: MetadataEnricher | None,
        hub: PushHub,
    ) -> ImportResponse | JSONResponse:
        try:
            result = await self._service.import_batch(
                batch,
                user_name,
                session,
                enricher=enricher,
                tolerance_seconds=settings.DEDUP_TOLERANCE_SECONDS,
            )
        except TransportFailureError as exc:
            return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))

        if result.imported:
            hub.publish(user_name, {"event": NEW_SCROBBLE_EVENT, "payload": {"imported": result.imported}})
        return ImportResponse(
            stats=result.capped(settings.IMPORT_MAX_REPORTED_ERRORS),
            message=f"Imported {result.imported} of {result.total} listens",
        )

    async def import_listens(
        self,
        user_name: str,
        request: ImportRequest,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        settings: Annotated[AppSettings, Depends(get_settings)],
        enricher: Annotated[MetadataEnricher | None, Depends(get_enricher)],
        hub: Annotated[PushHub, Depends(get_push_hub)],
    ) -> ImportResponse | JSONResponse:
        """Import listens submitted as a ListenBrainz-style JSON array."""
        batch = ImportBatch(
            raw_records=request.payload,
            source_format=SourceFormat.LISTENBRAINZ_ARRAY,
            import_mode=request.import_mode,
            metadata_source=request.metadata_source,
            deduplicate=request.deduplicate,
        )
        return await self._run_import(batch, user_name, session, settings, enricher, hub)

    async def import_file(
        self,
        user_name: str,
        file: UploadFile,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        settings: Annotated[AppSettings, Depends(get_settings)],
        enricher: Annotated[MetadataEnricher | None, Depends(get_enricher)],
        hub: Annotated[PushHub, Depends(get_push_hub)],
        import_mode: Annotated[ImportMode, Form()] = ImportMode.SKIP,
        metadata_source: Annotated[MetadataSource, Form()] = MetadataSource.ORIGINAL,
        deduplicate: Annotated[bool, Form()] = True,
    ) -> ImportResponse | JSONResponse:
        """Import an uploaded export file (any supported JSON schema, or CSV)."""
        data = await _read_upload(file, settings.import_max_file_size_bytes)
        try:
            detected = load_import_file(
                file.filename,
                data,
                file.content_type,
                max_size_bytes=settings.import_max_file_size_bytes,
            )
        except ImportPipelineError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))

        logger.info(
            "Importing %d %s records from %s for user %s",
            len(detected.records),
            detected.format,
            file.filename,
            user_name,
        )
        batch = ImportBatch(
            raw_records=detected.records,
            source_format=detected.format,
            import_mode=import_mode,
            metadata_source=metadata_source,
            deduplicate=deduplicate,
        )
        return await self._run_import(batch, user_name, session, settings, enricher, hub)

    async def validate_file(
        self,
        user_name: str,
        file: UploadFile,
        settings: Annotated[AppSettings, Depends(get_settings)],
    ) -> ValidationResult:
        """Pre-flight check of an upload; nothing is imported."""
        data = await _read_upload(file, settings.import_max_file_size_bytes)
        return validate_import_file(
            file.filename,
            data,
            file.content_type,
            max_size_bytes=settings.import_max_file_size_bytes,
        )

    async def export(
        self,
        user_name: str,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        engine: Annotated[AggregationEngine, Depends(get_engine)],
        export_format: Annotated[ExportFormat, Query(alias="format")] = ExportFormat.JSON,
        time_range: Annotated[TimeRange, Query(alias="range")] = TimeRange.ALL_TIME,
    ) -> Response:
        """Download the user's listens as a JSON or CSV file."""
        try:
            filename, body = await self._service.export(user_name, session, time_range, export_format, engine)
        except TransportFailureError as exc:
            return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))
        return Response(
            content=body,
            media_type=MEDIA_TYPES[export_format],
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    async def recent_listens(
        self,
        user_name: str,
        session: Annotated[AsyncSession, Depends(db_manager.dependency)],
        count: int = Query(default=DEFAULT_RECENT_LISTENS_COUNT, ge=1, le=MAX_RECENT_LISTENS_COUNT),
    ) -> RecentListensResponse | JSONResponse:
        """Most recent listens, newest first."""
        try:
            listens = await self._service.recent_listens(user_name, session, count)
        except TransportFailureError as exc:
            return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))
        return RecentListensResponse(
            user_name=user_name,
            count=len(listens),
            listens=[listen.to_payload() for listen in listens],
        )


_instance = ListensRouter()
router = _instance.router
