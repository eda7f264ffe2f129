"""JWT access token creation and verification.

Token claims:
  - sub:              account ID
  - employee_number:  account employee number
  - role:             account role string
  - permissions:      permission names held at issuance (display only)
  - iat:              issuance timestamp
  - exp:              expiry timestamp (fixed lifetime, 24h by default)

The embedded permission snapshot is never used for authorization: every
request re-reads the account and reconciles its grants (see
``lostfound.auth.reconcile``).  Verification is a pure signature/expiry
check and never touches the database.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from lostfound.config import settings
from lostfound.middleware.exceptions import InvalidTokenError, TokenExpiredError

ALGORITHM = settings.jwt_algorithm


@dataclass(frozen=True)
class ClaimSet:
    account_id: str
    employee_number: str
    role: str
    permissions: list[str] = field(default_factory=list)
    issued_at: datetime | None = None
    expires_at: datetime | None = None


def create_access_token(
    account_id: str,
    employee_number: str,
    role: str,
    permissions: list[str],
    expires_delta: timedelta | None = None,
    issued_at: datetime | None = None,
) -> str:
    now = issued_at or datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(hours=settings.access_token_expire_hours)
    )
    payload = {
        "sub": account_id,
        "employee_number": employee_number,
        "role": role,
        "permissions": permissions,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def issue_access_token(identity) -> str:
    """Mint a token for a reconciled ``EffectiveIdentity``."""
    return create_access_token(
        account_id=identity.account_id,
        employee_number=identity.employee_number,
        role=identity.role.value,
        permissions=sorted(identity.permissions),
    )


def decode_token(token: str) -> dict:
    """Decode and validate a JWT.

    Raises TokenExpiredError past ``exp`` and InvalidTokenError for any
    other failure (bad signature, other algorithm, malformed token).
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise InvalidTokenError()


def verify_access_token(token: str) -> ClaimSet:
    payload = decode_token(token)

    account_id = payload.get("sub")
    employee_number = payload.get("employee_number")
    role = payload.get("role")
    if not account_id or not employee_number or not role:
        raise InvalidTokenError("Token is missing required claims")

    iat = payload.get("iat")
    exp = payload.get("exp")
    return ClaimSet(
        account_id=account_id,
        employee_number=employee_number,
        role=role,
        permissions=list(payload.get("permissions") or []),
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc) if iat else None,
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
    )
