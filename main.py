import logging
import time
from typing import Any

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from audit import AuditSink
from config import get_settings
from database import SessionLocal
from errors import CostsError, NotFoundError, StorageError, ValidationError
from periods import Clock, system_clock
from schemas import (
    CostOut,
    DeveloperOut,
    LogOut,
    ReportOut,
    ReportQuery,
    UserDetailOut,
    UserOut,
    parse_payload,
    subject_from,
)
from services import CostService, LogService, ReportService, UserService, list_developers
from stores import SqlCostLedger, SqlReportCache, SqlUserDirectory

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Cost Reports")
app.state.audit = AuditSink(SessionLocal, service=settings.service_name)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock() -> Clock:
    return system_clock


def get_audit(request: Request) -> AuditSink:
    return request.app.state.audit


@app.on_event("startup")
def startup_event():
    app.state.audit.info(f"{settings.service_name} started")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        await run_in_threadpool(
            request.app.state.audit.request,
            request.method,
            url,
            status_code,
            elapsed_ms,
        )


@app.exception_handler(CostsError)
def costs_error_handler(request: Request, exc: CostsError) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, ValidationError):
        status_code = 400
    else:
        status_code = 500
    if isinstance(exc, StorageError):
        logger.error(f"storage_error: path={request.url.path} error={exc}")
        request.app.state.audit.error(
            "Storage error", path=request.url.path, error=str(exc)
        )
    return JSONResponse(
        status_code=status_code, content={"id": exc.subject_id, "message": str(exc)}
    )


@app.exception_handler(RequestValidationError)
def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = str(errors[0].get("msg", "Invalid request")) if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"id": None, "message": message})


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"unhandled_error: path={request.url.path}", exc_info=exc)
    request.app.state.audit.error(
        "Unhandled error", path=request.url.path, error=str(exc)
    )
    return JSONResponse(
        status_code=500, content={"id": None, "message": "Internal server error"}
    )


@app.post("/api/add", response_model=CostOut, status_code=201)
def add_cost(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    audit: AuditSink = Depends(get_audit),
):
    audit.info("Endpoint accessed: POST /api/add (cost)", body=payload)
    service = CostService(SqlUserDirectory(db), SqlCostLedger(db), clock, audit)
    return service.submit(payload)


@app.get("/api/report", response_model=ReportOut)
def get_report(
    request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    audit: AuditSink = Depends(get_audit),
):
    params = dict(request.query_params)
    audit.info("Endpoint accessed: GET /api/report", query=params)
    query = parse_payload(ReportQuery, params, subject_from(params, "id"))
    service = ReportService(
        SqlUserDirectory(db), SqlCostLedger(db), SqlReportCache(db), clock, audit
    )
    return service.resolve(query.user_id, query.year, query.month).to_response()


@app.get("/api/users", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db), audit: AuditSink = Depends(get_audit)):
    audit.info("Endpoint accessed: GET /api/users")
    return UserService(SqlUserDirectory(db), SqlCostLedger(db), audit).list_all()


@app.get("/api/users/{user_id}", response_model=UserDetailOut)
def user_details(
    user_id: str, db: Session = Depends(get_db), audit: AuditSink = Depends(get_audit)
):
    audit.info("Endpoint accessed: GET /api/users/:id", userid=user_id)
    try:
        parsed_id = int(user_id)
    except ValueError as exc:
        raise ValidationError("Invalid user ID. Must be a number.", user_id) from exc
    details = UserService(SqlUserDirectory(db), SqlCostLedger(db), audit).details(
        parsed_id
    )
    return UserDetailOut(
        id=details.id,
        first_name=details.first_name,
        last_name=details.last_name,
        total=float(details.total),
    )


@app.post("/api/users", response_model=UserOut, status_code=201)
def add_user(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    audit: AuditSink = Depends(get_audit),
):
    audit.info("Endpoint accessed: POST /api/users", body=payload)
    return UserService(SqlUserDirectory(db), SqlCostLedger(db), audit).create(payload)


@app.get("/api/logs", response_model=list[LogOut])
def list_logs(db: Session = Depends(get_db), audit: AuditSink = Depends(get_audit)):
    audit.info("Endpoint accessed: GET /api/logs")
    return LogService(db).list_all()


@app.get("/api/about", response_model=list[DeveloperOut])
def about(audit: AuditSink = Depends(get_audit)):
    audit.info("Endpoint accessed: GET /api/about")
    return list_developers(settings)


@app.get("/health")
def health():
    return {"status": "ok", "service": settings.service_name}


def main():
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
