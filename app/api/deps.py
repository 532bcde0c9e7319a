import logging
from typing import Generator, Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.config import settings
from app.services.layer_service import LayerService
from app.services.layers_admin import LayersAdminService

logger = logging.getLogger(__name__)

# 1. DATABASE DEPENDENCY
def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# 2. AUTH DEPENDENCY
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

async def get_current_admin(token: Annotated[str, Depends(oauth2_scheme)]) -> dict:
    """
    Validates the bearer token and returns its claims.
    Only tokens carrying the 'admin' role may manage layers.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise credentials_exception

    if payload.get("sub") is None:
        raise credentials_exception

    if payload.get("role") != "admin":
        logger.info(f"User {payload.get('sub')} denied access to layers admin")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="The user doesn't have enough privileges",
        )

    return payload

SessionDep = Annotated[Session, Depends(get_db)]
AdminUser = Annotated[dict, Depends(get_current_admin)]


# 3. SERVICE DEPENDENCIES
# One service per request so load_for_update stays scoped to the request session
def get_layer_service(db: SessionDep) -> LayerService:
    return LayerService(db)

def get_layers_admin_service(layer_service: Annotated[LayerService, Depends(get_layer_service)]) -> LayersAdminService:
    return LayersAdminService(layer_service.db, layer_service)

LayerServiceDep = Annotated[LayerService, Depends(get_layer_service)]
LayersAdminDep = Annotated[LayersAdminService, Depends(get_layers_admin_service)]
