from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, UploadFile

from finance_tracker.api.dependencies import get_current_user_id, get_upload_pipeline
from finance_tracker.api.schemas import ImportResponse
from finance_tracker.errors import MalformedInputError, UploadTooLargeError
from finance_tracker.logger import get_logger
from finance_tracker.services.uploads import UploadPipeline

logger = get_logger(__name__)

router = APIRouter()

NO_VALID_ROWS_MESSAGE = "No valid transactions found in CSV file"


@router.post("/api/upload-csv")
async def upload_csv(
    file: UploadFile,
    user_id: Annotated[int, Depends(get_current_user_id)],
    pipeline: Annotated[UploadPipeline, Depends(get_upload_pipeline)],
) -> ImportResponse:
    filename = file.filename or "upload.csv"
    if not filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are allowed")

    # One byte past the limit is enough to detect an oversize upload
    payload = await file.read(pipeline.config.max_upload_bytes + 1)
    try:
        outcome = await pipeline.import_upload(user_id, filename, payload)
    except UploadTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    except MalformedInputError as exc:
        logger.warning("[IMPORT] Rejected upload '%s' from user %s: %s", filename, user_id, exc)
        raise HTTPException(status_code=400, detail=f"Could not parse CSV file: {exc}") from exc

    if outcome.no_valid_rows:
        raise HTTPException(status_code=400, detail=NO_VALID_ROWS_MESSAGE)

    return ImportResponse.from_outcome(outcome)
