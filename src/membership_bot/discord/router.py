"""Discord interactions webhook and OAuth redirect routes."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import ValidationError

from membership_bot.discord.handlers import InteractionDispatcher
from membership_bot.discord.verification import verify_discord_request
from membership_bot.models.interaction import decode_interaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["discord"])


def get_dispatcher(request: Request) -> InteractionDispatcher:
    """Return the dispatcher wired up in the application lifespan."""
    return request.app.state.services.dispatcher


@router.post("/callback")
async def discord_callback(
    background_tasks: BackgroundTasks,
    payload: dict = Depends(verify_discord_request),
    dispatcher: InteractionDispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    """Receive a signed Discord interaction and answer it synchronously."""
    try:
        interaction = decode_interaction(payload)
    except ValidationError:
        logger.warning("Malformed interaction of type %s", payload.get("type"))
        raise HTTPException(status_code=400, detail="Malformed interaction payload")

    logger.info(
        "interaction type: %s. custom_id: %s",
        interaction.type,
        getattr(interaction, "custom_id", None),
    )
    return JSONResponse(await dispatcher.dispatch(interaction, background_tasks))


@router.get("/oauth", response_class=HTMLResponse)
async def oauth_callback(
    code: str = "",
    dispatcher: InteractionDispatcher = Depends(get_dispatcher),
) -> HTMLResponse:
    """Discord OAuth redirect target. Always renders a page, never an error."""
    return HTMLResponse(await dispatcher.complete_oauth(code))
