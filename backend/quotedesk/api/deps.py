from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from quotedesk.config import settings
from quotedesk.core.security import decode_access_token
from quotedesk.database import SessionLocal, get_db
from quotedesk.models import User
from quotedesk.services.catalog import CatalogLookup, SqlCatalogLookup
from quotedesk.services.errors import Unauthenticated
from quotedesk.services.identity import Principal
from quotedesk.services.notifications import (
    NotificationDispatcher,
    NullNotificationDispatcher,
    SqlNotificationDispatcher,
)
from quotedesk.services.quote_service import QuoteService


def _token_url() -> str:
    # Tokens are issued by the identity provider; the URL only feeds OpenAPI docs.
    if settings.api_prefix:
        return f"{settings.api_prefix.rstrip('/')}/auth/token"
    return "/auth/token"


oauth2_optional = OAuth2PasswordBearer(tokenUrl=_token_url(), auto_error=False)

_DB_DEP = Depends(get_db)
_TOKEN_OPT_DEP = Depends(oauth2_optional)


def _extract_bearer_from_headers(request: Request) -> Optional[str]:
    raw = request.headers.get("authorization") or request.headers.get("x-auth-token")
    if not raw:
        return None
    s = str(raw).strip()
    if not s:
        return None
    if s.lower().startswith("bearer "):
        return s.split(" ", 1)[1].strip()
    return s


def get_current_principal(
    request: Request,
    db: Session = _DB_DEP,
    token: Optional[str] = _TOKEN_OPT_DEP,
) -> Principal:
    if not token:
        token = _extract_bearer_from_headers(request)
    if not token:
        raise Unauthenticated("Not authenticated")

    claims = decode_access_token(token)
    subject = str((claims or {}).get("sub") or "").strip()
    if not subject:
        raise Unauthenticated("Invalid credentials")

    user = db.query(User).filter(User.id == subject, User.active.is_(True)).first()
    if not user:
        raise Unauthenticated("User not found or inactive")

    company_id = claims.get("company_id")
    return Principal(
        id=user.id,
        role=user.role,
        active_company_id=str(company_id) if company_id else None,
    )


def get_catalog(db: Session = _DB_DEP) -> CatalogLookup:
    return SqlCatalogLookup(db)


def get_notification_dispatcher() -> NotificationDispatcher:
    if not settings.notifications_enabled:
        return NullNotificationDispatcher()
    return SqlNotificationDispatcher(SessionLocal)


def get_quote_service(
    db: Session = _DB_DEP,
    catalog: CatalogLookup = Depends(get_catalog),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> QuoteService:
    return QuoteService(db, catalog=catalog, notifier=notifier)
