# assettrack/api/v1/auth.py
from fastapi import APIRouter, Depends

from assettrack.api.deps import get_current_user

router = APIRouter()


@router.get("/verify")
def verify_token(current_user: dict = Depends(get_current_user)):
    """Verify JWT token"""
    return {
        "valid": True,
        "user_id": current_user["user_id"],
        "email": current_user.get("email"),
    }


@router.get("/me")
def get_current_user_info(current_user: dict = Depends(get_current_user)):
    """Get current user info"""
    return current_user["payload"]
