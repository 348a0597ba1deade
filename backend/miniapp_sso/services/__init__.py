"""Service layer for the session/ticket protocol."""

from miniapp_sso.services.app_registry import AppRegistry, SqlAppRegistry
from miniapp_sso.services.session_service import SessionRegistry, SessionStart
from miniapp_sso.services.ticket_service import (
    IntrospectionResult,
    IssuedTicket,
    TicketIntrospector,
    TicketIssuer,
)
from miniapp_sso.services.url_validator import is_allowed_start_url, match_path_pattern

__all__ = [
    "AppRegistry",
    "SqlAppRegistry",
    "SessionRegistry",
    "SessionStart",
    "IntrospectionResult",
    "IssuedTicket",
    "TicketIntrospector",
    "TicketIssuer",
    "is_allowed_start_url",
    "match_path_pattern",
]
