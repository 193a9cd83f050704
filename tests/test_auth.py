from __future__ import annotations

import json

import pytest

from nezarai import auth, config


def test_password_hash_verifies():
  stored = auth.hash_password("rahasia123")
  assert stored.startswith("$2")
  assert stored != auth.hash_password("rahasia123")
  assert auth.verify_password("rahasia123", stored)
  assert not auth.verify_password("salah", stored)
  assert not auth.verify_password("rahasia123", "rusak")


def test_register_and_login():
  user, token = auth.register("nezar", "Nezar@Example.com", "rahasia123")
  assert user["email"] == "nezar@example.com"
  assert "passwordHash" not in user
  assert auth.user_for_token(token)["id"] == user["id"]

  logged_in, second = auth.login("NEZAR@example.com", "rahasia123")
  assert logged_in["id"] == user["id"]
  assert second != token


@pytest.mark.parametrize("username,email,password,message", [
    ("ab", "a@b.c", "rahasia123", "Username minimal 3 karakter"),
    ("nezar", "bukan-email", "rahasia123", "Email tidak valid"),
    ("nezar", "a@b.c", "123", "Password minimal 6 karakter"),
])
def test_register_validation(username, email, password, message):
  with pytest.raises(auth.AuthError) as exc:
    auth.register(username, email, password)
  assert str(exc.value) == message


def test_register_duplicates():
  auth.register("nezar", "nezar@example.com", "rahasia123")
  with pytest.raises(auth.AuthError, match="Email sudah terdaftar"):
    auth.register("lain", "NEZAR@example.com", "rahasia123")
  with pytest.raises(auth.AuthError, match="Username sudah digunakan"):
    auth.register("Nezar", "lain@example.com", "rahasia123")


def test_login_errors():
  auth.register("nezar", "nezar@example.com", "rahasia123")
  with pytest.raises(auth.AuthError, match="Email tidak terdaftar"):
    auth.login("siapa@example.com", "rahasia123")
  with pytest.raises(auth.AuthError, match="Password salah"):
    auth.login("nezar@example.com", "keliru")


def test_logout_invalidates_token():
  _, token = auth.register("nezar", "nezar@example.com", "rahasia123")
  auth.logout(token)
  assert auth.user_for_token(token) is None
  auth.logout(None)


def test_update_profile():
  user, _ = auth.register("nezar", "nezar@example.com", "rahasia123")
  auth.register("budi", "budi@example.com", "rahasia123")
  updated = auth.update_profile(user["id"], username="nezar_baru", avatar="https://x/a.png")
  assert updated["username"] == "nezar_baru"
  assert updated["avatar"] == "https://x/a.png"
  with pytest.raises(auth.AuthError, match="Username sudah digunakan"):
    auth.update_profile(user["id"], username="BUDI")


def test_expired_session_is_dropped(monkeypatch):
  _, token = auth.register("nezar", "nezar@example.com", "rahasia123")
  later = auth.time.time() + config.SESSION_COOKIE_MAX_AGE_SECONDS + 1
  monkeypatch.setattr(auth.time, "time", lambda: later)
  assert auth.user_for_token(token) is None
  accounts = json.loads(config.ACCOUNTS_FILE.read_text(encoding="utf-8"))
  assert token not in accounts["sessions"]


def test_login_prunes_stale_sessions(monkeypatch):
  _, old_token = auth.register("nezar", "nezar@example.com", "rahasia123")
  later = auth.time.time() + config.SESSION_COOKIE_MAX_AGE_SECONDS + 1
  monkeypatch.setattr(auth.time, "time", lambda: later)
  _, new_token = auth.login("nezar@example.com", "rahasia123")
  accounts = json.loads(config.ACCOUNTS_FILE.read_text(encoding="utf-8"))
  assert list(accounts["sessions"]) == [new_token]
  assert old_token != new_token
