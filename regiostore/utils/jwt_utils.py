import os
import time
import logging
from typing import Optional, Dict, Any, Tuple

import jwt

logger = logging.getLogger(__name__)

ROLE_BUYER = "buyer"
ROLE_SELLER = "seller"


def _secret() -> str:
    return os.getenv("SECRET_KEY") or "dev-secret-change-me"


def _default_ttl() -> int:
    raw = (os.getenv("ACCESS_TOKEN_TTL_SECONDS") or "").strip()
    try:
        ttl = int(raw) if raw else 60 * 60 * 24 * 7
    except ValueError:
        ttl = 60 * 60 * 24 * 7
    return max(60, ttl)


def create_access_token(subject_id: int, role: str, ttl_seconds: Optional[int] = None) -> str:
    now = int(time.time())
    payload = {
        "sub": str(subject_id),
        "role": role,
        "iat": now,
        "exp": now + int(ttl_seconds or _default_ttl()),
        "type": "access",
    }
    return jwt.encode(payload, _secret(), algorithm="HS256")


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, _secret(), algorithms=["HS256"])
    except jwt.PyJWTError as e:
        logger.info("token_rejected err=%s", e.__class__.__name__)
        return None


def parse_auth_header(auth_header: str) -> Tuple[Optional[str], Optional[str]]:
    if not auth_header:
        return None, None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1], "bearer"
    return None, None


def get_bearer_token(auth_header: str) -> Optional[str]:
    if not auth_header:
        return None
    token, _scheme = parse_auth_header(auth_header)
    return token
