import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import Patient
from .security_utils import TokenExpiredError, verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

NOT_AUTHENTICATED = (
    "Not authenticated. Please provide a valid Bearer token in the Authorization header."
)


def decode_bearer(credentials: HTTPAuthorizationCredentials) -> dict:
    """Decode the bearer token into its claims or raise a 401"""
    if not credentials:
        logger.error("❌ No credentials provided")
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)

    token = credentials.credentials
    if len(token.split(".")) != 3:
        logger.warning(f"⚠️ Malformed token received, token length: {len(token)}")
        raise HTTPException(
            status_code=401, detail="Invalid token format. Expected a valid JWT token."
        )

    try:
        claims = verify_jwt_token(token)
    except TokenExpiredError as e:
        logger.info("🔄 Expired token presented")
        raise HTTPException(
            status_code=401,
            detail="Token expired. Please log in again.",
            headers={"X-Token-Expired": "true"},
        ) from e

    if not claims:
        raise HTTPException(status_code=401, detail="Invalid token")
    return claims


async def get_current_patient(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Patient:
    """Get current patient from a bearer token"""
    claims = decode_bearer(credentials)

    if claims.get("role") != "patient":
        raise HTTPException(status_code=403, detail="Patient account required")

    try:
        patient_id = int(claims.get("sub"))
    except (TypeError, ValueError) as e:
        logger.error(f"❌ Token missing patient claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims") from e

    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise HTTPException(status_code=401, detail="Account no longer exists")

    logger.debug(f"✅ Patient authenticated: {patient.email}")
    return patient


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """Require an admin token and return its claims"""
    claims = decode_bearer(credentials)
    if claims.get("role") != "admin":
        logger.warning(f"🚫 Non-admin token used on admin route: role={claims.get('role')}")
        raise HTTPException(status_code=403, detail="Admin access required")
    return claims
