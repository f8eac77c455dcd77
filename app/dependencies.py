import sqlite3
from typing import Optional

from fastapi import Depends, Header

from app.database import get_db
from app.models import Identity
from app.services.auth_service import AuthService
from app.services.invoice_store import InvoiceStore
from app.services.invoices import InvoiceService


def get_invoice_service(conn: sqlite3.Connection = Depends(get_db)) -> InvoiceService:
    return InvoiceService(InvoiceStore(conn))


def get_auth_service(conn: sqlite3.Connection = Depends(get_db)) -> AuthService:
    return AuthService(conn)


def bearer_token(authorization: Optional[str], x_auth_token: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return x_auth_token or None


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    x_auth_token: Optional[str] = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> Identity:
    return auth.verify(bearer_token(authorization, x_auth_token))
