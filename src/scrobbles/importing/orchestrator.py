"""Import orchestration: normalize, deduplicate, apply the import mode, enrich."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scrobbles.db.models import ListenRecord
from scrobbles.db.operations import ListenRepository
from scrobbles.enrichment.client import MetadataEnricher
from scrobbles.enrichment.exceptions import EnrichmentError
from scrobbles.importing.constants import DEFAULT_DEDUP_TOLERANCE_SECONDS
from scrobbles.importing.dedup import Deduplicator
from scrobbles.importing.exceptions import TransportFailureError
from scrobbles.importing.models import ImportBatch, ImportMode, ImportResult, Listen, MetadataSource
from scrobbles.importing.normalizers import explain_rejection, normalize_record

logger = logging.getLogger(__name__)


class ImportOrchestrator:
    """Runs one ImportBatch for one user and returns its ImportResult.

    The whole batch is one unit of work inside the caller's session: the
    caller commits on success, and any storage error surfaces as
    TransportFailureError so the session is rolled back as a whole.
    """

    def __init__(
        self,
        repository: ListenRepository | None = None,
        enricher: MetadataEnricher | None = None,
        tolerance_seconds: int = DEFAULT_DEDUP_TOLERANCE_SECONDS,
    ) -> None:
        self._repo = repository or ListenRepository()
        self._enricher = enricher
        self._tolerance = tolerance_seconds

    async def run(
        self,
        batch: ImportBatch,
        user_name: str,
        session: AsyncSession,
        *,
        now: int | None = None,
    ) -> ImportResult:
        try:
            result = await self._run(batch, user_name, session, now)
            stored = await self._repo.count_listens(user_name, session)
        except SQLAlchemyError as exc:
            logger.exception("Import for user %s failed in storage", user_name)
            raise TransportFailureError(f"Storage failed during import: {exc}") from exc

        logger.info(
            "Import for user %s done: %d imported, %d enriched, %d duplicates skipped, %d failed of %d; %d stored",
            user_name,
            result.imported,
            result.enriched,
            result.duplicates_skipped,
            result.failed,
            result.total,
            stored,
            extra={
                "user_name": user_name,
                "import_stats": result.model_dump(exclude={"errors"}),
                "listens_stored": stored,
            },
        )
        return result

    async def _run(
        self,
        batch: ImportBatch,
        user_name: str,
        session: AsyncSession,
        now: int | None,
    ) -> ImportResult:
        result = ImportResult(total=len(batch.raw_records))

        if batch.import_mode == ImportMode.REPLACE:
            await self._repo.delete_user_listens(user_name, session)

        normalized: list[Listen] = []
        for index, raw in enumerate(batch.raw_records, start=1):
            listen = normalize_record(batch.source_format, raw, now=now)
            if listen is None:
                reason = explain_rejection(raw)
                logger.warning("Import for user %s: record %d rejected: %s", user_name, index, reason)
                result.failed += 1
                result.errors.append(f"Record {index}: {reason}")
                continue
            normalized.append(listen)

        dedup_enabled = batch.deduplicate and batch.import_mode != ImportMode.REPLACE
        dedup: Deduplicator[ListenRecord] = Deduplicator(self._tolerance)
        if dedup_enabled and normalized:
            await self._seed_existing(dedup, normalized, user_name, session)

        inserted: list[tuple[Listen, ListenRecord]] = []
        for listen in normalized:
            existing = dedup.find(listen) if dedup_enabled else None
            if existing is not None:
                if batch.import_mode == ImportMode.MERGE:
                    self._repo.merge_additional_info(existing, listen.additional_info)
                    result.imported += 1
                else:
                    result.duplicates_skipped += 1
                continue

            record = self._repo.add_listen(user_name, listen, session)
            if dedup_enabled:
                dedup.register(listen, record)
            inserted.append((listen, record))
            result.imported += 1

        if batch.metadata_source != MetadataSource.ORIGINAL and self._enricher is not None:
            result.enriched = await self._enrich(self._enricher, inserted, batch.metadata_source)

        await session.flush()
        return result

    async def _seed_existing(
        self,
        dedup: Deduplicator[ListenRecord],
        listens: list[Listen],
        user_name: str,
        session: AsyncSession,
    ) -> None:
        """Register stored listens that could collide with the batch."""
        start = min(listen.listened_at for listen in listens) - self._tolerance
        end = max(listen.listened_at for listen in listens) + self._tolerance + 1
        for record in await self._repo.list_listens(user_name, session, start, end):
            dedup.register(record.to_listen(), record)

    @staticmethod
    async def _enrich(
        enricher: MetadataEnricher,
        inserted: list[tuple[Listen, ListenRecord]],
        source: MetadataSource,
    ) -> int:
        """One enrichment round-trip per new listen. Failures leave the listen as imported."""
        enriched = 0
        for listen, record in inserted:
            try:
                info = await enricher.enrich(listen, source)
            except EnrichmentError as exc:
                logger.warning("Enrichment failed for %s - %s: %s", listen.artist_name, listen.track_name, exc)
                continue
            if info and ListenRepository.merge_additional_info(record, info):
                enriched += 1
        return enriched
