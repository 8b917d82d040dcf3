"""
Google OAuth (authorization code flow)

The code is exchanged for tokens at Google's token endpoint and the returned
ID token is verified through the tokeninfo endpoint before any user record is
touched.
"""

import logging
from urllib.parse import urlencode

import httpx

from codearena import config

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_ISSUERS = {"accounts.google.com", "https://accounts.google.com"}
GOOGLE_SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]


class GoogleAuthError(Exception):
    """Raised when the code exchange or ID token verification fails"""


def build_auth_url(state: str = None) -> str:
    params = {
        "client_id": config.GOOGLE_CLIENT_ID,
        "redirect_uri": config.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(GOOGLE_SCOPES),
        "access_type": "offline",
        "prompt": "select_account",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def validate_id_token_claims(claims: dict) -> dict:
    """
    Check audience, issuer and email of decoded ID token claims

    Returns:
        dict: Normalized Google profile

    Raises:
        GoogleAuthError: If a claim does not match
    """
    if claims.get("aud") != config.GOOGLE_CLIENT_ID:
        raise GoogleAuthError("ID token audience mismatch")

    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise GoogleAuthError("ID token issuer mismatch")

    if not claims.get("sub") or not claims.get("email"):
        raise GoogleAuthError("ID token missing subject or email")

    return {
        "google_id": claims["sub"],
        "email": claims["email"].lower(),
        "first_name": claims.get("given_name", ""),
        "last_name": claims.get("family_name", ""),
        "profile_image_url": claims.get("picture"),
    }


async def exchange_code(code: str) -> dict:
    """
    Exchange an authorization code for a verified Google profile

    Raises:
        GoogleAuthError: On any upstream failure
    """
    async with httpx.AsyncClient(timeout=20) as client:
        token_response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": config.GOOGLE_CLIENT_ID,
                "client_secret": config.GOOGLE_CLIENT_SECRET,
                "redirect_uri": config.GOOGLE_REDIRECT_URI,
                "grant_type": "authorization_code",
            },
        )

        if token_response.status_code != 200:
            logger.warning("Google token exchange failed with status %s", token_response.status_code)
            raise GoogleAuthError("Token exchange failed")

        id_token = token_response.json().get("id_token")
        if not id_token:
            raise GoogleAuthError("No ID token returned")

        info_response = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})

    if info_response.status_code != 200:
        logger.warning("Google ID token verification failed with status %s", info_response.status_code)
        raise GoogleAuthError("ID token verification failed")

    return validate_id_token_claims(info_response.json())
