"""Cached identity of the signed-in operator"""

import datetime
import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional

from utils.jwt_utils import decode_jwt, extract_scopes
from utils.paths import profile_path

logger = logging.getLogger(__name__)


@dataclass
class UserProfile:
    """Operator identity decoded from the access token

    Attributes:
        name: Display name ("name" claim)
        email: preferred_username or upn claim
        tenant_id: Directory the token was issued for ("tid" claim)
        scopes: Delegated scopes granted ("scp" claim)
        last_login: UTC timestamp of the token issue time
    """
    name: str
    email: str
    tenant_id: str
    scopes: List[str] = field(default_factory=list)
    last_login: str = "Now"

    @classmethod
    def from_access_token(cls, access_token: str) -> Optional["UserProfile"]:
        """Build a profile from unverified token claims, or None if the token is opaque"""
        claims = decode_jwt(access_token)
        if claims is None:
            return None

        last_login = "Now"
        iat = claims.get("iat")
        if isinstance(iat, (int, float)):
            try:
                issued = datetime.datetime.fromtimestamp(iat, datetime.timezone.utc)
                last_login = issued.strftime("%Y-%m-%d %H:%M:%S UTC")
            except (OverflowError, OSError, ValueError):
                last_login = "Invalid Date"

        return cls(
            name=claims.get("name") or "Unknown User",
            email=claims.get("preferred_username") or claims.get("upn") or "No Email",
            tenant_id=claims.get("tid") or "Unknown Tenant",
            scopes=extract_scopes(claims),
            last_login=last_login,
        )

    def save(self, path: Optional[Path] = None) -> None:
        target = Path(path) if path else profile_path()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(asdict(self), indent=2))

    @classmethod
    def load(cls, path: Optional[Path] = None) -> Optional["UserProfile"]:
        source = Path(path) if path else profile_path()
        if not source.exists():
            return None
        try:
            data = json.loads(source.read_text())
            return cls(
                name=data["name"],
                email=data["email"],
                tenant_id=data["tenant_id"],
                scopes=list(data.get("scopes", [])),
                last_login=data.get("last_login", "Now"),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable profile {source}: {e}")
            return None

    @staticmethod
    def clear(path: Optional[Path] = None) -> None:
        target = Path(path) if path else profile_path()
        if target.exists():
            target.unlink()
