"""
Client-side authentication state

Login is simulated: an email with no registered account gets the fixed demo
identity whatever the password. Accounts created through register() with a
password are checked against the stored hash on later logins.
"""
import asyncio
import logging
from typing import Optional

from passlib.context import CryptContext
from pydantic import ValidationError

from schemas import User
from storefront.ids import next_time_id
from storefront.storage import Storage, load_model
from storefront.subject import Subject

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "currentUser"
CREDENTIALS_KEY = "credentials"

password_ctx = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

DEMO_USER = {
    "id": 1,
    "name": "John Doe",
    "address": {
        "street": "123 Main St",
        "city": "Montreal",
        "state": "Quebec",
        "zip_code": "H1A 1A1",
        "country": "Canada",
    },
    "phone": "(514) 555-0123",
}


class InvalidCredentialsError(Exception):
    pass


def hash_password(password: str) -> str:
    return password_ctx.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return password_ctx.verify(password, hashed)


class AuthStore:
    def __init__(self, storage: Storage, latency: float = 0.5):
        self.storage = storage
        self.latency = latency
        self.current_user_stream: Subject[Optional[User]] = Subject(
            load_model(storage, CURRENT_USER_KEY, User)
        )

    def _set_current(self, user: Optional[User]) -> None:
        if user is None:
            self.storage.remove(CURRENT_USER_KEY)
        else:
            self.storage.set(CURRENT_USER_KEY, user.model_dump(mode="json"))
        self.current_user_stream.next(user)

    def _credentials(self) -> dict:
        creds = self.storage.get(CREDENTIALS_KEY, {})
        return creds if isinstance(creds, dict) else {}

    async def login(self, email: str, password: str) -> User:
        account = self._credentials().get(email.lower())
        if account:
            if not verify_password(password, account.get("hash", "")):
                raise InvalidCredentialsError("Invalid credentials")
            user = User.model_validate(account["user"])
        else:
            # TODO: replace the demo identity with a call to a real auth backend
            try:
                user = User(email=email, **DEMO_USER)
            except ValidationError:
                raise InvalidCredentialsError("Invalid email address")
        self._set_current(user)
        logger.info("User %s logged in", user.id)
        await asyncio.sleep(self.latency)
        return user

    async def register(self, user: User, password: Optional[str] = None) -> User:
        new_user = user.model_copy(update={"id": next_time_id()})
        if password:
            creds = self._credentials()
            creds[new_user.email.lower()] = {
                "hash": hash_password(password),
                "user": new_user.model_dump(mode="json"),
            }
            self.storage.set(CREDENTIALS_KEY, creds)
        self._set_current(new_user)
        logger.info("Registered user %s", new_user.id)
        await asyncio.sleep(self.latency)
        return new_user

    def logout(self) -> None:
        self._set_current(None)

    def get_current_user(self) -> Optional[User]:
        return self.current_user_stream.value

    def is_authenticated(self) -> bool:
        return self.current_user_stream.value is not None
