"""Database models."""

from miniapp_sso.models.app import AppStatus, LaunchMode, MiniApp
from miniapp_sso.models.session import MiniAppSession
from miniapp_sso.models.ticket import SsoTicket

__all__ = [
    "AppStatus",
    "LaunchMode",
    "MiniApp",
    "MiniAppSession",
    "SsoTicket",
]
