# reportflow/main.py
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from reportflow.api.v1.api import api_router
from reportflow.api.v1.endpoints import auth
from reportflow.core.errors import EditForbidden, InvalidInput, NotAuthorized, NotFound, ReportflowError
from reportflow.core.logging import setup_logging
from reportflow.db.models import Base
from reportflow.db.session import engine

setup_logging()
logger = structlog.get_logger("reportflow.api")

ERROR_STATUS = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (NotAuthorized, status.HTTP_403_FORBIDDEN),
    (EditForbidden, status.HTTP_403_FORBIDDEN),
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Reportflow API", lifespan=lifespan)


@app.exception_handler(ReportflowError)
async def handle_domain_error(request: Request, exc: ReportflowError):
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return JSONResponse(status_code=code, content={"detail": str(exc)})
    logger.error("unhandled_domain_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal error"})


# Include the main router for all routes prefixed with /api/v1
app.include_router(api_router, prefix="/api/v1")

# Include the auth router separately for the /auth prefix
app.include_router(auth.router, prefix="/auth")

@app.get("/")
def read_root():
    return {"message": "Welcome to the Reportflow API"}
