"""
JWT payload decoding for display purposes
"""
import base64
import json
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def decode_jwt(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode JWT token without verification.

    Note: This only decodes the payload, does not verify signature.
    The result is used to label the session, never to authorize anything.

    Args:
        token: JWT access token

    Returns:
        Decoded JWT payload as dictionary, or None if invalid
    """
    # JWT structure: header.payload.signature
    parts = token.split(".")
    if len(parts) != 3:
        logger.debug(f"Invalid JWT format: expected 3 parts, got {len(parts)}")
        return None

    payload = parts[1]
    # Add padding if needed (JWT uses base64url without padding)
    payload += "=" * (-len(payload) % 4)

    try:
        decoded = json.loads(base64.urlsafe_b64decode(payload).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        logger.debug(f"Error decoding JWT: {e}")
        return None

    return decoded if isinstance(decoded, dict) else None


def extract_scopes(claims: Dict[str, Any]) -> List[str]:
    """Delegated scopes from the space-separated "scp" claim"""
    scp = claims.get("scp")
    if not isinstance(scp, str):
        return []
    return scp.split()
