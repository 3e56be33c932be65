"""Discord request signature verification as a FastAPI dependency."""

import json
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from fastapi import HTTPException, Request

from membership_bot.config import get_settings
from membership_bot.errors import AuthenticityError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"


def verify_signature(body: bytes, signature: str, timestamp: str, public_key: str) -> bool:
    """Check an Ed25519 signature over ``timestamp + body``.

    Returns False if any input is missing, if the signature or key is not
    valid hex, or if the signature does not match.
    """
    if not (body and signature and timestamp and public_key):
        return False
    try:
        key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key))
        key.verify(bytes.fromhex(signature), timestamp.encode() + body)
    except (InvalidSignature, ValueError):
        return False
    return True


async def verify_discord_request(request: Request) -> dict:
    """Verify the Discord signature and return the parsed JSON payload.

    Reads the raw body FIRST (before any JSON parsing) so the signature is
    checked against the exact bytes Discord signed.

    Raises AuthenticityError (rendered as 401 by the app) if the signature is
    invalid, and HTTPException(400) if a correctly signed body is not a JSON
    object.
    """
    settings = get_settings()
    body = await request.body()

    if not verify_signature(
        body,
        request.headers.get(SIGNATURE_HEADER, ""),
        request.headers.get(TIMESTAMP_HEADER, ""),
        settings.discord_public_key,
    ):
        logger.warning("Rejected interaction with invalid request signature")
        raise AuthenticityError("Bad request signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Malformed interaction payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Malformed interaction payload")
    return payload
