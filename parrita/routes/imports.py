import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from parrita.db import get_db
from parrita.services.csv_parser import parse_csv
from parrita.services.errors import ServiceError
from parrita.services.importer import DiscoveryCallImporter


logger = logging.getLogger(__name__)

router = APIRouter(tags=["Discovery calls"])


# ---------------- SCHEMA ----------------

class ImportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    csv_data: str = Field("", alias="csvData")


# ---------------- ROUTES ----------------

@router.post("/import-discovery-calls")
def import_discovery_calls(payload: ImportRequest, db: Session = Depends(get_db)):

    logger.info("Starting CSV import...")

    rows = parse_csv(payload.csv_data)

    if not rows:
        logger.error("No data found in CSV")
        raise ServiceError(400, "No data found in CSV")

    try:
        summary = DiscoveryCallImporter(db).import_rows(rows)

    except Exception as e:
        logger.exception("Error in import-discovery-calls")
        raise ServiceError(500, str(e) or "Unknown error") from e

    return {
        "success": True,
        "imported": summary.imported,
        "errors": summary.errors,
        "import_batch_id": summary.import_batch_id,
        "message": f"Successfully imported {summary.imported} discovery calls",
    }


@router.get("/import-batches")
def list_import_batches(db: Session = Depends(get_db)):

    return [
        {
            "import_batch_id": batch.import_batch_id,
            "created_at": batch.created_at.isoformat(),
            "count": batch.count,
        }
        for batch in DiscoveryCallImporter(db).list_batches()
    ]


@router.delete("/import-batches/{import_batch_id}")
def delete_import_batch(import_batch_id: str, db: Session = Depends(get_db)):

    deleted = DiscoveryCallImporter(db).delete_batch(import_batch_id)

    if not deleted:
        raise ServiceError(404, "Import batch not found")

    return {"success": True, "deleted": deleted}
