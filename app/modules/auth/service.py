import asyncio
import logging
from supabase import AsyncClient
from app.modules.auth.schemas import LoginRequest, RegisterRequest, AuthResponse
from app.modules.auth.identity import GoogleIdentityVerifier, INVALID_IDENTITY_MESSAGE
from app.modules.users.service import UserService
from app.modules.users.schemas import UserProfileResponse
from app.core.exceptions import AuthError, ConflictError, NotFoundError
from app.core.security import create_session_token, hash_password, verify_password, SessionUser
from app.core.utils import new_id
from typing import Any, Dict

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


class AuthService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase
        self.users = UserService(supabase)

    def _issue(self, user: Dict[str, Any], message: str) -> AuthResponse:
        token = create_session_token(user["id"], user["email"], user["display_name"])
        return AuthResponse(message=message, token=token, user=UserService.to_response(user))

    async def register(self, register_data: RegisterRequest) -> AuthResponse:
        """Register a new email/password account"""
        email = register_data.email.lower()
        if await self.users.get_user_by_email(email):
            raise ConflictError("An account with this email already exists.")

        password_hash = await asyncio.to_thread(hash_password, register_data.password)
        user = await self.users.create_user(
            user_id=new_id(),
            email=email,
            display_name=register_data.display_name,
            provider="email",
            password_hash=password_hash,
        )
        logger.info(f"Registered user {user['id']}")
        return self._issue(user, "Account created successfully")

    async def login(self, login_data: LoginRequest) -> AuthResponse:
        """Authenticate with email and password"""
        user = await self.users.get_user_by_email(login_data.email)
        if user is None:
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)
        if not user.get("password_hash"):
            raise AuthError("This account uses external sign-in. Please log in with your identity provider.")

        matches = await asyncio.to_thread(verify_password, login_data.password, user["password_hash"])
        if not matches:
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)
        return self._issue(user, "Login successful")

    async def external_login(self, id_token: str, verifier: GoogleIdentityVerifier) -> AuthResponse:
        """Exchange a third-party identity token for a session; creates or refreshes the user."""
        identity = await verifier.verify(id_token)
        # An unproven email must never open (or be linked to) an account holding that address
        if not identity.email_verified:
            logger.info(f"Rejected external identity {identity.subject}: email not verified")
            raise AuthError(INVALID_IDENTITY_MESSAGE)

        user = await self.users.get_user_by_external_id(identity.subject)
        if user is None:
            # Emails are unique: attach the identity to an existing account instead of duplicating it
            user = await self.users.get_user_by_email(identity.email)
            if user is not None:
                user = await self.users.update_user(user["id"], {
                    "external_id": identity.subject,
                    "photo_url": identity.photo_url,
                }) or user
                logger.info(f"Linked external identity to user {user['id']}")
                return self._issue(user, "External login successful")

            user = await self.users.create_user(
                user_id=f"google_{identity.subject}",
                email=identity.email,
                display_name=identity.display_name,
                provider="external",
                external_id=identity.subject,
                photo_url=identity.photo_url,
            )
            logger.info(f"Created user {user['id']} from external identity")
        else:
            user = await self.users.update_user(user["id"], {
                "display_name": identity.display_name,
                "photo_url": identity.photo_url,
            }) or user
        return self._issue(user, "External login successful")

    async def get_profile(self, current_user: SessionUser) -> UserProfileResponse:
        user = await self.users.get_user_by_id(current_user.user_id)
        if user is None:
            raise NotFoundError("User not found.")
        return UserService.to_profile(user)
