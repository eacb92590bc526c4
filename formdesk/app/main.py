# app/main.py
import os
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from formdesk.app.core.config import settings
from formdesk.app.core.logging import get_logs_writer_logger
from formdesk.app.core.exceptions import (
    ExportNoContent,
    FormNotFound,
    InvalidSchema,
    PersistFailure,
    ResponseNotFound,
    UploadFailure,
    ValidationError,
)
from formdesk.db.session import engine
from formdesk.db import Base
from formdesk.app.routers import forms, responses, public

logger = get_logs_writer_logger()

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

app.include_router(forms.router)
app.include_router(responses.router)
app.include_router(public.router)


@app.on_event("startup")
async def on_startup():
    Base.metadata.create_all(bind=engine)


@app.get("/health")
def health():
    return {"status": "ok"}


# --- Exception handlers ---

@app.exception_handler(InvalidSchema)
async def invalid_schema_handler(request: Request, exc: InvalidSchema):
    return JSONResponse(status_code=400, content={"error_code": "invalid_schema", "message": str(exc)})


@app.exception_handler(FormNotFound)
async def form_not_found_handler(request: Request, exc: FormNotFound):
    return JSONResponse(status_code=404, content={"error_code": "form_not_found", "message": "Form not available"})


@app.exception_handler(ResponseNotFound)
async def response_not_found_handler(request: Request, exc: ResponseNotFound):
    return JSONResponse(status_code=404, content={"error_code": "response_not_found", "message": "Response not found"})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "error_code": "validation_error",
            "message": str(exc),
            "errors": [{"field_id": e.field_id, "label": e.label, "code": e.code} for e in exc.errors],
        },
    )


@app.exception_handler(UploadFailure)
async def upload_failure_handler(request: Request, exc: UploadFailure):
    logger.error("Upload failure on %s: %r", request.url.path, exc.__cause__)
    return JSONResponse(status_code=502, content={"error_code": "upload_failed", "message": "Submission could not be stored, please retry"})


@app.exception_handler(PersistFailure)
async def persist_failure_handler(request: Request, exc: PersistFailure):
    logger.error("Persist failure on %s: %r", request.url.path, exc.__cause__)
    return JSONResponse(status_code=500, content={"error_code": "persist_failed", "message": "Submission could not be stored, please retry"})


@app.exception_handler(ExportNoContent)
async def export_no_content_handler(request: Request, exc: ExportNoContent):
    return JSONResponse(status_code=404, content={"error_code": "export_no_content", "message": str(exc)})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
