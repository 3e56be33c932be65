"""FastAPI application with lifespan and health endpoint."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from membership_bot import __version__
from membership_bot.config import get_settings
from membership_bot.discord.router import router as discord_router
from membership_bot.errors import AuthenticityError
from membership_bot.logging_config import configure_logging
from membership_bot.services import build_services


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: configure logging, load config and wire collaborators."""
    settings = get_settings()
    configure_logging(settings.log_level)
    app.state.settings = settings
    app.state.services = build_services(settings)
    yield
    await app.state.services.aclose()


app = FastAPI(
    title="Membership Bot",
    lifespan=lifespan,
)
app.include_router(discord_router)


@app.exception_handler(AuthenticityError)
async def authenticity_error_handler(request: Request, exc: AuthenticityError) -> JSONResponse:
    """Unsigned or mis-signed requests get a 401 and nothing else."""
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "membership-bot",
        "version": __version__,
    }
