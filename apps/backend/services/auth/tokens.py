"""
HS256 JSON Web Tokens (PyJWT) shared by the admin and merchant logins.
Only HS256 is accepted on decode.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import jwt

ALGORITHM = "HS256"


class TokenError(Exception):
    pass


def encode_token(payload: Dict[str, Any], secret: str, expires_in: Optional[int] = None) -> str:
    claims = dict(payload)
    now = int(time.time())
    claims.setdefault("iat", now)
    if expires_in:
        claims["exp"] = now + int(expires_in)
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidSignatureError:
        raise TokenError("Invalid token signature")
    except jwt.InvalidAlgorithmError:
        raise TokenError("Unsupported token algorithm")
    except jwt.PyJWTError as e:
        raise TokenError(f"Malformed token: {e}")
