from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.database import get_db
from app.models import Admin, Lawyer, UserRole
from app.auth.schemas import TokenData
from app.auth.utils import verify_token

bearer_scheme = HTTPBearer(auto_error=False)

def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenData:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, authorization denied",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return verify_token(credentials.credentials, credentials_exception)

def require_role(allowed_roles: list[UserRole]):
    def role_checker(principal: TokenData = Depends(get_current_principal)):
        if principal.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return principal
    return role_checker

def get_current_lawyer(
    principal: TokenData = Depends(require_role([UserRole.LAWYER])),
    db: Session = Depends(get_db)
) -> Lawyer:
    lawyer = db.query(Lawyer).filter(Lawyer.id == principal.id).first()
    if lawyer is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Avocat not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return lawyer

def get_current_admin(
    principal: TokenData = Depends(require_role([UserRole.ADMIN])),
    db: Session = Depends(get_db)
) -> Admin:
    admin = db.query(Admin).filter(Admin.id == principal.id).first()
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return admin


# Convenience wrappers
def require_admin():
    return require_role([UserRole.ADMIN])
