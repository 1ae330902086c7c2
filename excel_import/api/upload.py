"""
upload.py
Spreadsheet upload endpoint: stages the multipart file on disk and hands it to the ingestion pipeline.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as FormFile
from typing import Optional
from excel_import.api.dependencies import get_ingestion_service
from excel_import.models.ingestion import UploadedFile, UploadErrorResponse, UploadSuccessResponse
from excel_import.services.errors import NoFileError
from excel_import.services.ingestion_service import IngestionService
from excel_import.utils.logging_config import logger
import os
import shutil
import tempfile
import time

router = APIRouter()

SUCCESS_MESSAGE = "Data successfully transferred to MongoDB."
FAILURE_MESSAGE = "An error occurred during the data transfer."

def _upload_dir() -> str:
    upload_dir = os.getenv("UPLOAD_DIR") or tempfile.gettempdir()
    os.makedirs(upload_dir, exist_ok=True)
    return upload_dir

def stage_upload(file: FormFile) -> UploadedFile:
    """Copy the uploaded part to <UPLOAD_DIR>/<epoch-ms>-<random>-<filename>."""
    filename = os.path.basename(file.filename)
    with tempfile.NamedTemporaryFile(
        delete=False,
        dir=_upload_dir(),
        prefix=f"{int(time.time() * 1000)}-",
        suffix=f"-{filename}",
    ) as tmp:
        tmp_path = tmp.name
        try:
            shutil.copyfileobj(file.file, tmp)
        except OSError:
            tmp.close()
            os.remove(tmp_path)
            raise
        size = tmp.tell()
    return UploadedFile(path=os.path.abspath(tmp_path), filename=filename, size=size)

def _error(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    body = UploadErrorResponse(message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

@router.post("/upload")
async def upload_excel(request: Request, service: IngestionService = Depends(get_ingestion_service)):
    """Import the first sheet of an uploaded spreadsheet into MongoDB."""
    form = await request.form()
    excelFile = form.get("excelFile")
    # A text field named excelFile carries no file either
    if not isinstance(excelFile, FormFile) or not excelFile.filename:
        return _error(400, str(NoFileError()))

    try:
        upload = await run_in_threadpool(stage_upload, excelFile)
    except OSError as e:
        logger.error(f"Could not stage upload '{excelFile.filename}': {e}")
        return _error(500, FAILURE_MESSAGE, f"Could not store uploaded file: {e}")

    result = await run_in_threadpool(service.ingest, upload)
    if result.success:
        body = UploadSuccessResponse(message=SUCCESS_MESSAGE, inserted_count=result.inserted_count)
        return JSONResponse(status_code=200, content=body.model_dump(by_alias=True))
    if result.error_kind == NoFileError.error_kind:
        return _error(400, result.message)
    logger.error(f"Error during data transfer: {result.message}")
    return _error(500, FAILURE_MESSAGE, result.message)
