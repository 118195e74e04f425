"""FastAPI application: the REST surface over the note services."""

import datetime as dt
import logging
import re
import traceback

from fastapi import APIRouter, Depends, FastAPI, Path, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, field_validator, model_validator

from .adapters import GoogleCalendarAdapter, GoogleSheetsRowStore, JsonFileRowStore, LocalCalendarAdapter
from .auth import AuthGate
from .config import Config, load_config
from .core.notes import (
    CATEGORIES_HEADER,
    CATEGORIES_TABLE,
    FIRST_DATA_ROW,
    NOTES_HEADER,
    NOTES_TABLE,
    ROLES_HEADER,
    ROLES_TABLE,
    USERS_HEADER,
    USERS_TABLE,
    Note,
)
from .core.stats import category_stats, current_month, role_stats
from .core.sync import normalize_recurrence
from .errors import NotekeeperError, RemoteStoreError
from .middleware import (
    BodySizeLimitMiddleware,
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    client_ip,
)
from .ports import CalendarRepository, RowStore
from .services import CatalogService, NoteService

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


# ============== Request models ==============


def _blank_if_none(value):
    return "" if value is None else value


class LoginRequest(BaseModel):
    username: str
    password: str
    rememberMe: bool = False

    @field_validator("username")
    @classmethod
    def username_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class PasswordChangeRequest(BaseModel):
    oldPassword: str
    newPassword: str

    @field_validator("oldPassword")
    @classmethod
    def old_password_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Current password is required")
        return v


class NoteRequest(BaseModel):
    """A note as posted by the client, minus rowIndex."""

    id: str = ""
    date: dt.date
    category: str = ""
    content: str = ""
    role: str = ""
    startTime: str = ""
    endTime: str = ""
    syncToCalendar: bool = False
    recurrence: str = "none"

    @field_validator("id", "category", "content", "role", "startTime", "endTime", "recurrence", mode="before")
    @classmethod
    def none_to_blank(cls, v):
        return _blank_if_none(v)

    @field_validator("id", "category", "content", "role")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("startTime", "endTime")
    @classmethod
    def valid_time(cls, v: str) -> str:
        v = v.strip()
        if not v:
            return ""
        match = TIME_PATTERN.match(v)
        if not match:
            raise ValueError("Time must be HH:MM")
        return f"{int(match.group(1)):02d}:{match.group(2)}"

    @field_validator("recurrence")
    @classmethod
    def valid_recurrence(cls, v: str) -> str:
        return normalize_recurrence(v) or "none"

    @model_validator(mode="after")
    def end_after_start(self) -> "NoteRequest":
        if self.startTime and self.endTime and self.endTime <= self.startTime:
            raise ValueError("endTime must be after startTime")
        return self

    def to_note(self) -> Note:
        return Note(
            id=self.id,
            date=self.date.isoformat(),
            category=self.category,
            content=self.content,
            role=self.role,
            start_time=self.startTime,
            end_time=self.endTime,
        )


# ============== Dependencies ==============

bearer_scheme = HTTPBearer(auto_error=False)


def current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Reject the request before any business logic unless the token is valid."""
    gate: AuthGate = request.app.state.auth
    return gate.verify(credentials.credentials if credentials else None)


def login_rate_limit(request: Request) -> None:
    request.app.state.login_limiter.hit(client_ip(request))


def get_note_service(request: Request) -> NoteService:
    return request.app.state.notes


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalogs


# ============== Routes ==============

router = APIRouter(prefix="/api")


@router.get("/health")
def health(request: Request):
    return {"status": "ok", "mode": request.app.state.mode}


@router.post("/login", dependencies=[Depends(login_rate_limit)])
def login(body: LoginRequest, request: Request):
    issued = request.app.state.auth.login(body.username, body.password, body.rememberMe)
    return {"token": issued.token, "username": issued.username}


@router.put("/user/password")
def change_password(body: PasswordChangeRequest, request: Request, username: str = Depends(current_user)):
    request.app.state.auth.change_password(username, body.oldPassword, body.newPassword)
    return {"message": "Password updated"}


@router.get("/categories", dependencies=[Depends(current_user)])
def list_categories(catalogs: CatalogService = Depends(get_catalog_service)):
    return [c.to_api() for c in catalogs.categories()]


@router.get("/roles", dependencies=[Depends(current_user)])
def list_roles(catalogs: CatalogService = Depends(get_catalog_service)):
    return [r.to_api() for r in catalogs.roles()]


@router.get("/notes", dependencies=[Depends(current_user)])
def list_notes(notes: NoteService = Depends(get_note_service)):
    return [n.to_api() for n in notes.list_notes()]


@router.post("/notes", dependencies=[Depends(current_user)])
def create_note(body: NoteRequest, notes: NoteService = Depends(get_note_service)):
    note = notes.create(body.to_note(), body.syncToCalendar, body.recurrence)
    return {"message": "Success", "eventId": note.event_id, "id": note.id}


@router.put("/notes/{rowIndex}", dependencies=[Depends(current_user)])
def update_note(
    body: NoteRequest,
    rowIndex: int = Path(ge=FIRST_DATA_ROW),
    notes: NoteService = Depends(get_note_service),
):
    notes.update(rowIndex, body.to_note(), body.syncToCalendar)
    return {"message": "Updated"}


@router.delete("/notes/{rowIndex}", dependencies=[Depends(current_user)])
def delete_note(
    rowIndex: int = Path(ge=FIRST_DATA_ROW),
    id: str = Query(default=""),
    notes: NoteService = Depends(get_note_service),
):
    notes.delete(rowIndex, id)
    return {"message": "Deleted"}


@router.get("/stats/categories", dependencies=[Depends(current_user)])
def stats_by_category(
    month: str | None = Query(default=None, pattern=MONTH_PATTERN),
    notes: NoteService = Depends(get_note_service),
    catalogs: CatalogService = Depends(get_catalog_service),
):
    lines = category_stats(notes.list_notes(), catalogs.categories(), month or current_month())
    return [line.to_api() for line in lines]


@router.get("/stats/roles", dependencies=[Depends(current_user)])
def stats_by_role(
    month: str | None = Query(default=None, pattern=MONTH_PATTERN),
    notes: NoteService = Depends(get_note_service),
    catalogs: CatalogService = Depends(get_catalog_service),
):
    lines = role_stats(notes.list_notes(), catalogs.roles(), month or current_month())
    return [line.to_api() for line in lines]


# ============== Exception handlers ==============


async def notekeeper_exception_handler(request: Request, exc: NotekeeperError):
    if isinstance(exc, RemoteStoreError):
        logger.error(f"{request.method} {request.url.path} store failure: {exc}")
        return JSONResponse(status_code=500, content={"message": "Storage unavailable"})

    content = {"message": exc.message}
    if exc.details:
        content["details"] = exc.details
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content=content)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc), "msg": err.get("msg", "")})
    logger.info(f"{request.method} {request.url.path} rejected: {details}")
    return JSONResponse(status_code=400, content={"message": "Invalid input", "details": details})


async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}\n{traceback.format_exc()}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# ============== Wiring ==============

LOCAL_TABLES = {
    USERS_TABLE: [USERS_HEADER],
    CATEGORIES_TABLE: [
        CATEGORIES_HEADER,
        ["工作", "#ffadad", "20"],
        ["學習", "#ffd6a5", "10"],
        ["生活", "#fdffb6", "15"],
        ["運動", "#caffbf", "12"],
    ],
    ROLES_TABLE: [ROLES_HEADER],
    NOTES_TABLE: [NOTES_HEADER],
}


def build_store(config: Config) -> RowStore:
    if config.use_mock_db:
        store = JsonFileRowStore(config.local_db_path)
        store.seed(LOCAL_TABLES)
        return store
    return GoogleSheetsRowStore(config.spreadsheet_id, config.google_credentials_file)


def build_calendar(config: Config) -> CalendarRepository:
    if config.use_mock_db:
        return LocalCalendarAdapter()
    return GoogleCalendarAdapter(config.google_credentials_file, config.calendar_id)


def create_app(
    config: Config | None = None,
    store: RowStore | None = None,
    calendar: CalendarRepository | None = None,
) -> FastAPI:
    """Create and configure the API application."""
    if config is None:
        config = load_config()
    if store is None:
        store = build_store(config)
    if calendar is None:
        calendar = build_calendar(config)

    mode = "mock" if config.use_mock_db else "google"
    if config.use_mock_db:
        logger.info(f"Local development mode: data in {config.local_db_path}, calendar calls are logged only")
    else:
        logger.info(f"Google mode: spreadsheet {config.spreadsheet_id}, calendar {config.calendar_id}")

    app = FastAPI(title="Notekeeper", docs_url="/api/docs", openapi_url="/api/openapi.json")
    app.state.mode = mode
    app.state.config = config
    app.state.auth = AuthGate(store, config.jwt_secret)
    app.state.notes = NoteService(store, calendar, config.timezone)
    app.state.catalogs = CatalogService(store)
    app.state.login_limiter = FixedWindowRateLimiter(
        config.login_rate_limit_max,
        config.rate_limit_window,
        "Too many failed logins, please try again in 15 minutes",
    )
    app.state.api_limiter = FixedWindowRateLimiter(config.rate_limit_max, config.rate_limit_window)

    app.add_exception_handler(NotekeeperError, notekeeper_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Last added runs first
    app.add_middleware(RateLimitMiddleware, limiter=app.state.api_limiter)
    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app
