from supabase import Client
from postgrest.exceptions import APIError
from reefing.config import settings
from reefing.core.errors import InternalError
from reefing.modules.users.schemas import User, UserUpdate
from typing import List, Optional, Tuple
from datetime import datetime, timezone
import logging
import re

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
MAX_CREATE_ATTEMPTS = 5
DEFAULT_USERNAME = "reefer"

SAMPLE_AQUARIUMS = [
    {
        "name": "Main Reef Display",
        "type": "reef",
        "volume": 180,
        "description": "Large mixed reef tank with SPS, LPS, and soft corals.",
    },
    {
        "name": "Nano Reef",
        "type": "reef",
        "volume": 25,
        "description": "Small nano reef focused on soft corals and a few small fish.",
    },
]


def is_unique_violation(error: APIError) -> bool:
    return str(getattr(error, "code", "")) == UNIQUE_VIOLATION


def username_base(email: str) -> str:
    local = (email or "").split("@", 1)[0].lower()
    return re.sub(r"[^a-z0-9._-]", "", local) or DEFAULT_USERNAME


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _find_one(self, column: str, value: str) -> Optional[User]:
        result = self.supabase.table("users")\
            .select("*")\
            .eq(column, value)\
            .limit(1)\
            .execute()
        return User(**result.data[0]) if result.data else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self._find_one("id", user_id)

    def find_by_identity_provider_id(self, identity_provider_id: str) -> Optional[User]:
        return self._find_one("identity_provider_id", identity_provider_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self._find_one("email", email)

    def find_by_username(self, username: str) -> Optional[User]:
        return self._find_one("username", username)

    def find_by_ids(self, user_ids: List[str]) -> List[User]:
        if not user_ids:
            return []
        result = self.supabase.table("users")\
            .select("*")\
            .in_("id", list(set(user_ids)))\
            .execute()
        return [User(**row) for row in result.data or []]

    def generate_username(self, email: str) -> str:
        """Email local part; `reefer` taken -> `reefer1`, then `reefer2`, ..."""
        base = username_base(email)
        result = self.supabase.table("users")\
            .select("username")\
            .like("username", f"{base}%")\
            .execute()
        taken = {row["username"] for row in result.data or [] if row.get("username")}
        if base not in taken:
            return base
        suffix = 1
        while f"{base}{suffix}" in taken:
            suffix += 1
        return f"{base}{suffix}"

    def create(self, identity_provider_id: str, email: str, name: Optional[str] = None) -> User:
        """Insert a new user. Unique violations propagate as postgrest APIError."""
        result = self.supabase.table("users").insert({
            "identity_provider_id": identity_provider_id,
            "email": email,
            "name": name,
            "username": self.generate_username(email),
        }).execute()
        if not result.data:
            raise InternalError("Failed to create user")
        return User(**result.data[0])

    def link_identity(self, user_id: str, identity_provider_id: str) -> User:
        result = self.supabase.table("users")\
            .update({
                "identity_provider_id": identity_provider_id,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            })\
            .eq("id", user_id)\
            .execute()
        if not result.data:
            raise InternalError("Failed to link user")
        return User(**result.data[0])

    def resolve_user(self, identity_provider_id: str, email: str, name: Optional[str] = None) -> Tuple[User, bool]:
        """
        Find the user for a token subject, adopting an existing row with the
        same email or creating a new one. Returns (user, created).

        Concurrent first requests for one subject race on the unique
        constraints; the loser re-reads and returns the winner's row. A
        username collision with some other new user just retries with a
        freshly generated username.
        """
        for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
            user = self.find_by_identity_provider_id(identity_provider_id)
            if user:
                return user, False

            try:
                existing = self.find_by_email(email)
                if existing:
                    logger.info(f"Linking identity {identity_provider_id} to existing user {existing.id}")
                    return self.link_identity(existing.id, identity_provider_id), False

                user = self.create(identity_provider_id, email, name)
            except APIError as e:
                if not is_unique_violation(e):
                    raise
                logger.info(
                    f"Concurrent creation of user {identity_provider_id} (attempt {attempt}), re-reading"
                )
                continue

            logger.info(f"Created user {user.id} ({user.username}) for identity {identity_provider_id}")
            if settings.create_sample_aquariums:
                self._create_sample_aquariums(user.id)
            return user, True

        raise InternalError("Failed to initialize user")

    def _create_sample_aquariums(self, user_id: str) -> None:
        try:
            self.supabase.table("aquariums").insert(
                [{**sample, "user_id": user_id} for sample in SAMPLE_AQUARIUMS]
            ).execute()
        except Exception as e:
            logger.warning(f"Failed to create sample aquariums for user {user_id}: {e}")

    def update_profile(self, user_id: str, user_data: UserUpdate) -> User:
        """Partial update of profile fields"""
        try:
            update_data = user_data.model_dump(exclude_unset=True)
            if not update_data:
                user = self.find_by_id(user_id)
                if user is None:
                    raise InternalError("User record disappeared")
                return user

            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("users")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise InternalError("Failed to update user")
            return User(**result.data[0])
        except InternalError:
            raise
        except Exception as e:
            logger.exception(f"Failed to update user {user_id}: {e}")
            raise InternalError("Failed to update user") from e

    def update_profile_image_key(self, user_id: str, image_key: Optional[str]) -> User:
        result = self.supabase.table("users")\
            .update({
                "profile_image_key": image_key,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            })\
            .eq("id", user_id)\
            .execute()
        if not result.data:
            raise InternalError("Failed to update profile image")
        return User(**result.data[0])
