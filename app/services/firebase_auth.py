import logging
from pathlib import Path

import firebase_admin
from firebase_admin import credentials, auth
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.config import FIREBASE_CREDENTIALS, FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)

# Scheme to extract the Firebase ID token sent by the mobile app.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def initialize_firebase() -> None:
    """Initializes the Firebase Admin SDK once per process."""
    if firebase_admin._apps:
        return

    options = {"projectId": FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None
    try:
        if Path(FIREBASE_CREDENTIALS).exists():
            cred = credentials.Certificate(FIREBASE_CREDENTIALS)
            firebase_admin.initialize_app(cred, options)
        else:
            # Falls back to Google Application Default Credentials
            firebase_admin.initialize_app(options=options)
        logger.info("Firebase Admin SDK initialized successfully.")
    except Exception as e:
        logger.error(f"FATAL: Error initializing Firebase Admin SDK: {e}")


async def get_current_uid(token: str = Depends(oauth2_scheme)) -> str:
    """
    Required dependency: Verifies the Firebase ID token and returns the caller's uid.
    Raises HTTPException if the token is missing or invalid.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception

    try:
        decoded_token = auth.verify_id_token(token)
        return decoded_token['uid']
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except auth.InvalidIdTokenError:
        raise credentials_exception
    except Exception:
        raise credentials_exception
