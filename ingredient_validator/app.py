import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import crud, schemas
from .cache import TTLCache
from .config import Settings, configure_logging, get_settings
from .db import SessionLocal, init_db
from .errors import InvalidRequestError
from .gap_reporter import GapReporter
from .notifications import LoggingNotifier, Notifier
from .search import VocabularySearch
from .validator import BatchValidator

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    vocabulary: TTLCache
    search: VocabularySearch
    reporter: GapReporter
    validator: BatchValidator

    def close(self) -> None:
        self.vocabulary.close()


def build_services(settings: Settings, session_factory: Callable[[], Session],
                   notifier: Optional[Notifier] = None) -> Services:
    def load_vocabulary():
        db = session_factory()
        try:
            return crud.load_vocabulary(db)
        finally:
            db.close()

    vocabulary = TTLCache(load_vocabulary, settings.vocabulary_ttl_seconds)
    search = VocabularySearch(vocabulary.get, secondary_threshold=settings.auto_correct_threshold)
    reporter = GapReporter(
        session_factory,
        notifier=notifier or LoggingNotifier(),
        review_threshold=settings.review_threshold,
        retry_attempts=settings.store_retry_attempts,
        retry_base_delay=settings.store_retry_base_delay,
    )
    validator = BatchValidator(
        search,
        reporter=reporter,
        max_batch_size=settings.max_batch_size,
        search_limit=settings.search_limit,
        fuzzy_threshold=settings.fuzzy_threshold,
        auto_correct_threshold=settings.auto_correct_threshold,
        suggest_threshold=settings.suggest_threshold,
        max_workers=settings.validation_workers,
    )
    return Services(settings, vocabulary, search, reporter, validator)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    # Initialize DB once at startup
    init_db()
    app.state.services = build_services(settings, SessionLocal)
    logger.info("Ingredient validator started")
    yield
    app.state.services.close()


app = FastAPI(lifespan=lifespan)

# Allow CORS for API clients (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_services(request: Request) -> Services:
    return request.app.state.services


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(e.get("type") == "json_invalid" for e in errors):
        return JSONResponse(
            status_code=400,
            content={"error": "malformed_body", "message": "Request body is not valid JSON"},
        )
    messages = [
        f"{'.'.join(str(p) for p in e.get('loc', ()) if p != 'body')}: {e.get('msg')}"
        for e in errors
    ]
    return JSONResponse(
        status_code=422,
        content={"error": "invalid_request", "message": "; ".join(messages)},
    )


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return JSONResponse(
        status_code=422, content={"error": "invalid_request", "message": str(exc)}
    )


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/api/ingredients/validate", response_model=schemas.ValidationResponse)
def validate_ingredients(
    payload: schemas.ValidationRequest,
    services: Services = Depends(get_services),
    x_request_timeout: Optional[float] = Header(default=None),
):
    deadline = None
    if x_request_timeout is not None and x_request_timeout > 0:
        deadline = time.monotonic() + x_request_timeout
    return services.validator.validate(payload.ingredients, deadline=deadline)


@app.get("/api/ingredients/search", response_model=List[schemas.MatchCandidate])
def search_ingredients(
    q: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(10, ge=1, le=50),
    services: Services = Depends(get_services),
):
    return services.search.search(q, limit=limit, fuzzy_threshold=services.settings.fuzzy_threshold)


@app.get("/api/ingredients/reports", response_model=List[schemas.ReportSummary])
def list_reports(
    needs_review: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return crud.get_summaries(db, needs_review=needs_review, skip=skip, limit=limit)


@app.get("/api/ingredients", response_model=List[schemas.Ingredient])
def list_ingredients(
    category: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return [crud.to_schema(r) for r in crud.get_ingredients(db, skip=skip, limit=limit, category=category)]


@app.get("/api/ingredients/{ingredient_id}", response_model=schemas.Ingredient)
def read_ingredient(ingredient_id: int, db: Session = Depends(get_db)):
    db_ingredient = crud.get_ingredient(db, ingredient_id)
    if db_ingredient is None:
        raise HTTPException(status_code=404, detail="Ingredient not found")
    return crud.to_schema(db_ingredient)


@app.post("/api/ingredients", response_model=schemas.Ingredient)
def create_ingredient(
    ingredient: schemas.IngredientCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    if crud.get_ingredient_by_name(db, ingredient.name.strip()):
        raise HTTPException(status_code=400, detail="Ingredient with that name already exists")
    created = crud.create_ingredient(db, ingredient)
    services.vocabulary.invalidate()
    return crud.to_schema(created)
