from __future__ import annotations

from threading import RLock
from typing import Any, Dict, Optional, Tuple
import json
import secrets
import time

import bcrypt
from fastapi import Request

from . import config
from .utils import _log_debug, generate_id, now_iso

_lock = RLock()


class AuthError(ValueError):
    """Registration or login rejected; the message is shown to the user."""


def _empty_accounts() -> Dict[str, Any]:
    return {"users": [], "sessions": {}}


def _load_accounts() -> Dict[str, Any]:
    path = config.ACCOUNTS_FILE
    if not path.exists():
        return _empty_accounts()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _log_debug(f"[AUTH] accounts load failed: {exc}")
        return _empty_accounts()
    if not isinstance(data, dict):
        return _empty_accounts()
    data.setdefault("users", [])
    data.setdefault("sessions", {})
    return data


def _save_accounts(data: Dict[str, Any]) -> None:
    path = config.ACCOUNTS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    if not stored:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        # not a bcrypt hash
        return False


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    payload = {
        "id": user.get("id"),
        "username": user.get("username"),
        "email": user.get("email"),
    }
    if user.get("avatar"):
        payload["avatar"] = user["avatar"]
    return payload


def _session_expired(session: Dict[str, Any], now: float) -> bool:
    expires_at = session.get("expiresAt")
    return not isinstance(expires_at, (int, float)) or expires_at <= now


def _prune_sessions(data: Dict[str, Any], now: float) -> None:
    stale = [t for t, s in data["sessions"].items()
             if not isinstance(s, dict) or _session_expired(s, now)]
    for token in stale:
        del data["sessions"][token]


def _new_session(data: Dict[str, Any], user_id: str) -> str:
    now = time.time()
    _prune_sessions(data, now)
    token = secrets.token_urlsafe(32)
    data["sessions"][token] = {
        "userId": user_id,
        "createdAt": now_iso(),
        "expiresAt": now + config.SESSION_COOKIE_MAX_AGE_SECONDS,
    }
    return token


def register(username: str, email: str, password: str) -> Tuple[Dict[str, Any], str]:
    username = (username or "").strip()
    email = (email or "").strip()
    if len(username) < config.USERNAME_MIN_CHARS:
        raise AuthError("Username minimal 3 karakter")
    if "@" not in email:
        raise AuthError("Email tidak valid")
    if not password or len(password) < config.PASSWORD_MIN_CHARS:
        raise AuthError("Password minimal 6 karakter")

    with _lock:
        data = _load_accounts()
        users = data["users"]
        if any(u.get("email", "").lower() == email.lower() for u in users):
            raise AuthError("Email sudah terdaftar")
        if any(u.get("username", "").lower() == username.lower() for u in users):
            raise AuthError("Username sudah digunakan")

        user = {
            "id": generate_id(),
            "username": username,
            "email": email.lower(),
            "passwordHash": hash_password(password),
            "createdAt": now_iso(),
        }
        users.append(user)
        token = _new_session(data, user["id"])
        _save_accounts(data)
    return public_user(user), token


def login(email: str, password: str) -> Tuple[Dict[str, Any], str]:
    with _lock:
        data = _load_accounts()
        user = next((u for u in data["users"]
                     if u.get("email", "").lower() == (email or "").strip().lower()), None)
        if user is None:
            raise AuthError("Email tidak terdaftar")
        if not verify_password(password or "", user.get("passwordHash", "")):
            raise AuthError("Password salah")
        token = _new_session(data, user["id"])
        _save_accounts(data)
    return public_user(user), token


def logout(token: Optional[str]) -> None:
    if not token:
        return
    with _lock:
        data = _load_accounts()
        if data["sessions"].pop(token, None) is not None:
            _save_accounts(data)


def user_for_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    if not token:
        return None
    with _lock:
        data = _load_accounts()
        session = data["sessions"].get(token)
        if not session:
            return None
        if _session_expired(session, time.time()):
            data["sessions"].pop(token, None)
            _save_accounts(data)
            return None
        user_id = session.get("userId")
        return next((u for u in data["users"] if u.get("id") == user_id), None)


def update_profile(user_id: str, username: Optional[str] = None,
                   avatar: Optional[str] = None) -> Dict[str, Any]:
    with _lock:
        data = _load_accounts()
        user = next((u for u in data["users"] if u.get("id") == user_id), None)
        if user is None:
            raise AuthError("User tidak ditemukan")
        if username is not None:
            username = username.strip()
            if len(username) < config.USERNAME_MIN_CHARS:
                raise AuthError("Username minimal 3 karakter")
            if any(u.get("username", "").lower() == username.lower() and u.get("id") != user_id
                   for u in data["users"]):
                raise AuthError("Username sudah digunakan")
            user["username"] = username
        if avatar is not None:
            user["avatar"] = avatar
        _save_accounts(data)
    return public_user(user)


def session_token(request: Request) -> Optional[str]:
    token = request.headers.get(config.SESSION_HEADER_NAME)
    if token:
        return token.strip() or None
    return request.cookies.get(config.SESSION_COOKIE_NAME)


def current_user(request: Request) -> Optional[Dict[str, Any]]:
    return user_for_token(session_token(request))
