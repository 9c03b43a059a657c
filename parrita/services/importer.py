import uuid
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Sequence

from sqlalchemy import func, delete, select
from sqlalchemy.exc import SQLAlchemyError

from parrita.models import DiscoveryCall
from parrita.services.client_info import parse_client_info


logger = logging.getLogger(__name__)

EXPECTED_COLUMNS = 5


@dataclass
class ImportSummary:
    imported: int
    errors: int
    import_batch_id: str


@dataclass
class ImportBatchSummary:
    import_batch_id: str
    created_at: datetime
    count: int


def _phase(value: str):
    return value if value else None


class DiscoveryCallImporter:

    def __init__(self, db):
        self.db = db

    # -----------------------------
    # IMPORT
    # -----------------------------

    def import_rows(self, rows: Sequence[Sequence[str]]) -> ImportSummary:
        """
        Store every data row (row 0 is the header) as a DiscoveryCall.

        Rows are committed one by one: a short or failing row is counted
        and skipped, the rest of the batch still goes in.
        """

        batch_id = str(uuid.uuid4())

        imported = 0
        errors = 0

        logger.info("CSV has %s data rows (excluding header)", max(len(rows) - 1, 0))

        for i in range(1, len(rows)):

            row = rows[i]

            if len(row) < EXPECTED_COLUMNS:
                logger.error(
                    "Skipping row %s: insufficient columns (got %s, expected %s)",
                    i, len(row), EXPECTED_COLUMNS
                )
                errors += 1
                continue

            infos_client, phase1, phase2, phase3, phase4 = row[:EXPECTED_COLUMNS]

            info = parse_client_info(infos_client)

            record = DiscoveryCall(
                id=str(uuid.uuid4()),

                entreprise=info.entreprise,
                secteur=info.secteur,
                besoin=info.besoin,
                contexte=info.contexte,

                phase_1_introduction=_phase(phase1),
                phase_2_exploration=_phase(phase2),
                phase_3_affinage=_phase(phase3),
                phase_4_next_steps=_phase(phase4),

                raw_data={
                    "infos_client": infos_client,
                    "line_number": i
                },
                import_batch_id=batch_id,
            )

            try:
                self.db.add(record)
                self.db.commit()
                imported += 1

            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error("Error importing line %s: %s", i, e)
                errors += 1

        logger.info(
            "Import completed: %s imported, %s errors (batch %s)",
            imported, errors, batch_id
        )

        return ImportSummary(
            imported=imported,
            errors=errors,
            import_batch_id=batch_id
        )

    # -----------------------------
    # BATCHES
    # -----------------------------

    def list_batches(self) -> List[ImportBatchSummary]:

        first_seen = func.min(DiscoveryCall.created_at)

        rows = self.db.execute(
            select(
                DiscoveryCall.import_batch_id,
                first_seen,
                func.count(DiscoveryCall.id),
            )
            .group_by(DiscoveryCall.import_batch_id)
            .order_by(first_seen.desc())
        ).all()

        return [
            ImportBatchSummary(
                import_batch_id=batch_id,
                created_at=created_at,
                count=count
            )
            for batch_id, created_at, count in rows
        ]

    def delete_batch(self, import_batch_id: str) -> int:

        result = self.db.execute(
            delete(DiscoveryCall)
            .where(DiscoveryCall.import_batch_id == import_batch_id)
        )
        self.db.commit()

        logger.info(
            "Deleted import batch %s (%s records)",
            import_batch_id, result.rowcount
        )

        return result.rowcount
