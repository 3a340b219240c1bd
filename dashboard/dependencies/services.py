"""Service wiring for routes.

Everything is built from what ``create_app`` placed on ``app.state``; no
module-level singletons.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from dashboard.config import Settings
from dashboard.database import get_db
from dashboard.services.account_service import AccountService
from dashboard.services.interfaces import Mailer, Store
from dashboard.services.oauth_service import OAuthService
from dashboard.services.repositories import SqlStore


def get_store(db: Session = Depends(get_db)) -> Store:
    return SqlStore(db)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_account_service(
    store: Store = Depends(get_store),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_app_settings),
) -> AccountService:
    return AccountService(store, mailer, settings)


def get_oauth_service(request: Request, store: Store = Depends(get_store)) -> OAuthService:
    return OAuthService(store, request.app.state.github_client)
