from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .settings import Settings, get_settings

ALGORITHM = "HS256"
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, settings: Settings, expires_minutes: int = 60) -> str:
  """Mint a token signed like the auth provider's; used by scripts and tests."""
  to_encode = data.copy()
  expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
  to_encode.update({"exp": expire})
  if settings.jwt_audience:
    to_encode.setdefault("aud", settings.jwt_audience)
  return jwt.encode(to_encode, settings.jwt_secret, algorithm=ALGORITHM)


def decode_token(token: str, settings: Settings) -> dict:
  options = {"verify_aud": bool(settings.jwt_audience)}
  try:
    return jwt.decode(
      token,
      settings.jwt_secret,
      algorithms=[ALGORITHM],
      audience=settings.jwt_audience,
      options=options,
    )
  except JWTError as exc:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc


async def get_current_user(
  credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
  settings: Settings = Depends(get_settings),
) -> dict:
  if not credentials or credentials.scheme.lower() != "bearer":
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
  payload = decode_token(credentials.credentials, settings)
  if not payload.get("sub"):
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no subject")
  return payload


async def get_current_user_id(user: dict = Depends(get_current_user)) -> str:
  return str(user["sub"])
