"""JWT token management for API callers"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt

from hiring_platform.config import settings

TOKEN_ISSUER = "hiring-platform-api"


class AuthService:
    """Issues and validates the bearer tokens that identify API callers"""

    @staticmethod
    def generate_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None,
        token_type: str = "access"
    ) -> str:
        """
        Generate a JWT token with the provided data

        Args:
            data: Dictionary of claims to include in the token
            expires_delta: Optional expiration time delta (defaults to jwt_expiration_hours)
            token_type: Value of the "type" claim checked by validate_token

        Returns:
            Encoded JWT token string
        """
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(hours=settings.jwt_expiration_hours)

        to_encode.update({
            "exp": expire,
            "iat": datetime.utcnow(),
            "iss": TOKEN_ISSUER,
            "type": token_type
        })

        # Use jwt_secret if available, otherwise fall back to secret_key
        secret = settings.jwt_secret or settings.secret_key
        return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)

    @staticmethod
    def decode_token(token: str) -> Optional[Dict[str, Any]]:
        """
        Decode and verify a JWT token's signature and expiry

        Returns:
            Dictionary of token claims if valid, None otherwise
        """
        try:
            secret = settings.jwt_secret or settings.secret_key
            return jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
        except JWTError:
            return None

    @staticmethod
    def validate_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
        """
        Validate a JWT token including signature, expiration, and type

        Returns:
            Dictionary of token claims if valid, None otherwise
        """
        payload = AuthService.decode_token(token)

        if not payload:
            return None

        if payload.get("type") != token_type:
            return None

        return payload

    @staticmethod
    def create_access_token(user_id: str, group_id: Optional[str] = None) -> str:
        """
        Create an access token for a user

        Args:
            user_id: User UUID, carried in the sub claim
            group_id: Optional default group for the session

        Returns:
            Encoded JWT access token
        """
        data: Dict[str, Any] = {"sub": str(user_id)}
        if group_id:
            data["group_id"] = str(group_id)
        return AuthService.generate_token(data, token_type="access")
