from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from taskdesk.database import get_db
from taskdesk.errors import AuthenticationFailed, PermissionDenied
from taskdesk.models.user import User
from taskdesk.utils.auth import decode_token, has_capability, VIEW_REPORTS
from taskdesk.utils.logger import setup_logger, log_warning

logger = setup_logger("auth")


def _extract_token(authorization: Optional[str], token_query: Optional[str]) -> Optional[str]:
    """Return token from Authorization header (Bearer ...) or token query param (compat).
    Header has precedence.
    """
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return token_query


def get_current_user(
    authorization: Optional[str] = Header(None),
    token: Optional[str] = None,
    db: Session = Depends(get_db),
) -> User:
    tok = _extract_token(authorization, token)
    if not tok:
        raise AuthenticationFailed(error="Missing token")
    user_id = decode_token(tok)
    user = db.get(User, user_id)
    if user is None:
        log_warning(logger, "Token for unknown user", user_id=user_id)
        raise AuthenticationFailed(error="Invalid token")
    return user


def require_report_access(user: User = Depends(get_current_user)) -> User:
    """Gate for the cross-user completion report."""
    if not has_capability(user, VIEW_REPORTS):
        log_warning(logger, "Report access denied", user_id=user.id, role=user.role)
        raise PermissionDenied(error="Administrative report access required")
    return user
