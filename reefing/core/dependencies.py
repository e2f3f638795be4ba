"""
Core dependencies for route protection and ownership checking

Chain: bearer token -> verified identity -> local user (created or linked on
first sight) -> path-addressed aquarium the caller owns.
"""

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from reefing.core.auth import Identity, TokenVerifier, get_token_verifier
from reefing.core.errors import InternalError, Unauthenticated
from reefing.core.ownership import authorize_owner
from reefing.database.supabase_client import get_supabase
from reefing.modules.aquariums.schemas import Aquarium
from reefing.modules.aquariums.service import AquariumService
from reefing.modules.users.schemas import User
from reefing.modules.users.service import UserService
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


def get_aquarium_service(supabase: Client = Depends(get_supabase)) -> AquariumService:
    return AquariumService(supabase)


def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity:
    """Verified identity from the Authorization header; 401 before any handler runs"""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Missing bearer token")
    return verifier.verify(credentials.credentials)


def ensure_user(
    request: Request,
    identity: Identity = Depends(get_identity),
    service: UserService = Depends(get_user_service),
) -> User:
    """Resolve (or create, or link) the local user for the token and attach it to the request"""
    try:
        user, created = service.resolve_user(
            identity.subject,
            identity.email or identity.placeholder_email,
            identity.name,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error resolving user for {identity.subject}: {e}")
        raise InternalError("Failed to initialize user") from e

    request.state.user = user
    request.state.user_created = created
    return user


def get_owned_aquarium(
    aquarium_id: str,
    user: User = Depends(ensure_user),
    service: AquariumService = Depends(get_aquarium_service),
) -> Aquarium:
    """The {aquarium_id} path parameter's aquarium: 404 if absent, 403 unless the caller owns it"""
    return authorize_owner(
        service.find_by_id,
        aquarium_id,
        owner_of=lambda aquarium: aquarium.user_id,
        caller_id=user.id,
        label="Aquarium",
    )
