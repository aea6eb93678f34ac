import secrets
from datetime import datetime

from jose import jwt


def create_session_token(code_id: int, issued_at: datetime, expires_at: datetime, secret: str, alg: str) -> str:
    payload = {
        "codeId": code_id,
        "jti": secrets.token_hex(16),
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=alg)


def decode_session_token(token: str, secret: str, alg: str) -> dict:
    # Raises jose.JWTError (ExpiredSignatureError included) on any failure.
    return jwt.decode(token, secret, algorithms=[alg])
