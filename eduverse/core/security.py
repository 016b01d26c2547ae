"""
Sécurité : tokens, utilisateur courant, contrôle des rôles
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from firebase_admin import auth
from jose import JWTError, jwt as jose_jwt

from eduverse.core.config import settings
from eduverse.core.firebase_connector import get_db
from eduverse.schemas.auth import CurrentUser

logger = logging.getLogger(__name__)

# Bearer header is optional: the web client authenticates with the AuthToken cookie
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Créer un token JWT"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> str:
    """Return the Firebase uid carried by `token`.

    Our own API token is tried first; a Firebase ID token (what the web client
    stores in the AuthToken cookie) is accepted as a fallback.
    """
    try:
        payload = jose_jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        uid = payload.get("sub")
        if not uid:
            raise credentials_exception
        return uid
    except JWTError as e:
        logger.debug(f"Local JWT decode failed ({e}); trying Firebase ID token")

    try:
        claims = auth.verify_id_token(token)
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Your session has expired. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (auth.InvalidIdTokenError, auth.RevokedIdTokenError, auth.CertificateFetchError, ValueError) as e:
        logger.debug(f"verify_id_token failed: {e}")
        raise credentials_exception

    uid = claims.get("uid") or claims.get("sub") or claims.get("user_id")
    if not uid:
        raise credentials_exception
    return uid


async def get_current_user(
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    cookie_token: Optional[str] = Cookie(None, alias=settings.AUTH_COOKIE_NAME),
    db=Depends(get_db),
) -> CurrentUser:
    """Obtenir l'utilisateur courant depuis le token (header Bearer ou cookie)."""
    token = bearer_token or cookie_token
    if not token:
        raise credentials_exception

    uid = decode_token(token)
    user_doc = db.collection("users").document(uid).get()
    if not user_doc.exists:
        logger.warning(f"Authenticated uid={uid} has no Firestore profile")
        raise credentials_exception

    return CurrentUser.from_profile(uid, user_doc.to_dict() or {})


async def get_current_active_user(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Obtenir l'utilisateur actif"""
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account suspended")
    return current_user


def require_roles(*roles: str):
    """Dependency factory restricting an endpoint to the given roles."""
    async def role_checker(current_user: CurrentUser = Depends(get_current_active_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user
    return role_checker
