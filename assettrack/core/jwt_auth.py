# assettrack/core/jwt_auth.py
"""
JWT Authentication for API access.
Validates access tokens issued by the identity provider.
"""
import jwt
from typing import Optional, Dict, Any
from fastapi import HTTPException


class JWTAuth:
    """JWT Authentication handler bound to one secret/algorithm pair"""

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate JWT token.

        Args:
            token: JWT token string

        Returns:
            Decoded token payload

        Raises:
            HTTPException: If token is invalid or expired
        """
        if not self.secret_key:
            raise HTTPException(
                status_code=401,
                detail="Token validation is not configured"
            )
        try:
            # exp is verified by PyJWT when present
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm]
            )
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=401,
                detail="Token has expired"
            )
        except jwt.InvalidTokenError:
            raise HTTPException(
                status_code=401,
                detail="Invalid token"
            )

    @staticmethod
    def get_user_id(payload: Dict[str, Any]) -> Optional[str]:
        """
        Extract user_id from JWT payload.

        Args:
            payload: Decoded JWT payload

        Returns:
            User ID or None
        """
        user_id = (
            payload.get('user_id') or
            payload.get('sub') or
            payload.get('id')
        )
        return str(user_id) if user_id else None

    @staticmethod
    def get_email(payload: Dict[str, Any]) -> Optional[str]:
        """Extract email (or username) from JWT payload"""
        return payload.get('email') or payload.get('username')
