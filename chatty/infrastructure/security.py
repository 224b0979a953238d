# chatty/infrastructure/security.py
import datetime
import secrets
from typing import Any, Optional

import jwt
from fastapi.concurrency import run_in_threadpool
from jwt import ExpiredSignatureError, InvalidTokenError
from passlib.context import CryptContext

from chatty.config import AppConfig

TOKEN_CLAIMS = ("id", "email", "version")


class SecurityService:
    def __init__(self, config: AppConfig):
        self.config = config
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=config.BCRYPT_ROUNDS,
        )

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        # passlib compares digests in constant time
        return self.pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        return self.pwd_context.hash(password)

    async def check_password(self, plain_password: str, hashed_password: str) -> bool:
        return await run_in_threadpool(
            self.verify_password, plain_password, hashed_password
        )

    async def hash_password(self, password: str) -> str:
        return await run_in_threadpool(self.get_password_hash, password)

    def create_access_token(self, user_id: int, email: str, version: int) -> str:
        to_encode: dict[str, Any] = {
            "id": user_id,
            "email": email,
            "version": version,
            "nonce": secrets.token_hex(8),
        }
        if self.config.ACCESS_TOKEN_EXPIRE_MINUTES:
            to_encode["exp"] = datetime.datetime.now(
                datetime.timezone.utc
            ) + datetime.timedelta(minutes=self.config.ACCESS_TOKEN_EXPIRE_MINUTES)
        return jwt.encode(
            to_encode, self.config.SECRET_KEY, algorithm=self.config.ALGORITHM
        )

    def decode_access_token(self, token: str) -> Optional[dict[str, Any]]:
        try:
            payload = jwt.decode(
                token, self.config.SECRET_KEY, algorithms=[self.config.ALGORITHM]
            )
        except (ExpiredSignatureError, InvalidTokenError):
            return None
        if any(claim not in payload for claim in TOKEN_CLAIMS):
            return None
        if not isinstance(payload["id"], int) or not isinstance(payload["version"], int):
            return None
        return payload

    async def verify_access_token(self, token: str) -> Optional[dict[str, Any]]:
        return await run_in_threadpool(self.decode_access_token, token)
