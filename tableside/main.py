from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager, suppress
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException
from tableside.api.analytics import router as analytics_router
from tableside.api.customer import router as customer_router
from tableside.api.foods import router as foods_router
from tableside.api.notifications import router as notifications_router
from tableside.api.orders import router as orders_router
from tableside.api.restaurants import router as restaurants_router
from tableside.api.staff import router as staff_router
from tableside.api.tables import router as tables_router
from tableside.api.websocket import router as websocket_router
from tableside.config import settings
from tableside.core.database import engine, Base
from tableside.core.errors import TablesideError, UpstreamFailure
from tableside.core.redis_client import listen_for_events, test_connection
from tableside.services.sessions import TABLE_COOKIE, read_table_cookie
from tableside.utils.broadcast import handle_remote_event
import tableside.models  # noqa: F401  registers every table on Base
import asyncio
import logging
import re

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CUSTOMER_PATH = re.compile(r"^/(?P<tenant>[^/]+)/customer(/|$)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    listener = None
    if settings.redis_fanout:
        listener = asyncio.create_task(listen_for_events(handle_remote_event))
    yield
    if listener is not None:
        listener.cancel()
        with suppress(asyncio.CancelledError):
            await listener


app = FastAPI(
    title="Tableside API",
    description="Multi-tenant restaurant table ordering",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def require_table_session(request: Request, call_next):
    """Customer ordering pages need a table cookie; send everyone else to the table login"""
    match = CUSTOMER_PATH.match(request.url.path)
    if match and read_table_cookie(request.cookies.get(TABLE_COOKIE), match["tenant"]) is None:
        return RedirectResponse(f"/{match['tenant']}/table-login", status_code=303)
    return await call_next(request)

# Error rendering: every failure is {"error": message}
@app.exception_handler(TablesideError)
async def tableside_error_handler(request: Request, exc: TablesideError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return JSONResponse(status_code=400, content={"error": message, "details": jsonable_errors(errors)})

@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    error = UpstreamFailure("Something went wrong, please try again")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())

def jsonable_errors(errors):
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]

# Include routers
app.include_router(restaurants_router, tags=["super-admin"])
app.include_router(staff_router, tags=["staff"])
app.include_router(foods_router, tags=["foods"])
app.include_router(tables_router, tags=["tables"])
app.include_router(orders_router, tags=["orders"])
app.include_router(customer_router, tags=["customer"])
app.include_router(notifications_router, tags=["notifications"])
app.include_router(analytics_router, tags=["analytics"])
app.include_router(websocket_router, tags=["websocket"])

app.mount("/media", StaticFiles(directory=settings.media_dir, check_dir=False), name="media")

# Create tables
Base.metadata.create_all(bind=engine)

@app.get("/")
async def root():
    return {"message": "Tableside Backend Running"}

@app.get("/health")
def health_check():
    health = {"status": "healthy", "version": "1.0.0"}
    if settings.redis_fanout:
        health["redis"] = test_connection()
    return health
