"""
Auth routes: registration, login and access token renewal.
"""

from fastapi import APIRouter, HTTPException

from ..config import config, state
from ..exceptions import NotFoundError
from ..schemas import APIKeyResponse, CredentialsRequest, KeyPairResponse, RenewRequest

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth():
    if state.auth is None:
        raise HTTPException(status_code=500, detail="Auth not initialized")
    return state.auth


@router.post("/register", status_code=201)
async def register(request: CredentialsRequest) -> KeyPairResponse:
    """Create an account and return its first key pair."""
    if not config.ALLOW_REGISTRATION:
        raise NotFoundError("Registration is disabled")
    return KeyPairResponse.from_pair(_auth().register(request.username, request.password))


@router.post("/login")
async def login(request: CredentialsRequest) -> KeyPairResponse:
    return KeyPairResponse.from_pair(_auth().login(request.username, request.password))


@router.post("/renew")
async def renew(request: RenewRequest) -> APIKeyResponse:
    """Exchange a refresh token for a new access token."""
    return APIKeyResponse.from_key(_auth().renew(request.refresh_token))
