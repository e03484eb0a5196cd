import logging
from typing import Optional

from fastapi import FastAPI, APIRouter, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session as DBSession, sessionmaker

from . import config
from .auth import (
    CredentialStore,
    TokenService,
    dummy_hash,
    get_credential_store,
    get_current_user_id,
    get_token_service,
)
from .db import get_db, init_db, make_engine
from .errors import NotFound, register_exception_handlers
from .logging_setup import setup_logging
from .repository import SqlTaskRepository, TaskRepository, UserRepository
from .schemas import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    TaskCreate,
    TaskOut,
    TaskSummary,
    TaskUpdate,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_task_repository(db: DBSession = Depends(get_db)) -> TaskRepository:
    return SqlTaskRepository(db)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(
    body: RegisterRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
):
    user = store.register(body.name, body.email, body.password)
    return {"user": user, "token": tokens.issue(user.id)}


@router.post("/auth/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
):
    user = store.verify(body.email, body.password)
    return {"user": user, "token": tokens.issue(user.id)}


@router.get("/auth/me", response_model=MeResponse)
def me(user_id: str = Depends(get_current_user_id), db: DBSession = Depends(get_db)):
    user = UserRepository(db).get(user_id)
    if user is None:
        raise NotFound("User not found")
    return {"user": user}


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@router.get("/tasks", response_model=list[TaskOut])
def list_tasks(
    status: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_task_repository),
):
    return tasks.list(user_id, status=status, sort=sort)


@router.get("/tasks/summary", response_model=TaskSummary)
def task_summary(
    user_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_task_repository),
):
    return tasks.summary(user_id)


@router.get("/tasks/{task_id}", response_model=TaskOut)
def get_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_task_repository),
):
    return tasks.get(task_id, user_id)


@router.post("/tasks", response_model=TaskOut, status_code=201)
def create_task(
    body: TaskCreate,
    user_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_task_repository),
):
    return tasks.create(body.model_dump(), user_id)


@router.put("/tasks/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    body: TaskUpdate,
    user_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_task_repository),
):
    return tasks.update(task_id, body.model_dump(exclude_unset=True), user_id)


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_task_repository),
):
    tasks.delete(task_id, user_id)
    return {"message": "Task deleted successfully"}


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------

@router.get("/health")
def health():
    return {"status": "ok"}


def create_app(settings: Optional[config.Settings] = None) -> FastAPI:
    settings = settings or config.get_settings()
    if settings.secret_key == config.DEV_SECRET_KEY:
        log.warning("SECRET_KEY is not set, signing tokens with the development key")

    app_engine = make_engine(settings.database_url)
    factory = sessionmaker(bind=app_engine)
    # Create tables on startup
    init_db(app_engine)
    dummy_hash(settings.bcrypt_rounds)

    app = FastAPI(title="Taskboard API")
    app.state.settings = settings
    app.state.engine = app_engine
    app.state.session_factory = factory
    app.state.tokens = TokenService(settings.secret_key, settings.token_ttl_hours)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(router)
    return app


setup_logging(config.LOG_LEVEL)
app = create_app()
