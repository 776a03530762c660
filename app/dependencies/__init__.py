"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_authorization_store,
    get_calendar_client,
    get_calendar_store,
    get_calendar_sync_service,
    get_connection_registry,
    get_database,
    get_event_publisher,
    get_google_oauth_client,
    get_notification_store,
    get_notification_writer,
    get_oauth_state_encoder,
    get_queue_client,
    get_slack_reporter,
    get_token_cipher_service,
    get_token_refresher,
)
from .config import AppSettingsDep, get_app_settings

__all__ = [
    "AppSettingsDep",
    "get_app_settings",
    "get_authorization_store",
    "get_calendar_client",
    "get_calendar_store",
    "get_calendar_sync_service",
    "get_connection_registry",
    "get_database",
    "get_event_publisher",
    "get_google_oauth_client",
    "get_notification_store",
    "get_notification_writer",
    "get_oauth_state_encoder",
    "get_queue_client",
    "get_slack_reporter",
    "get_token_cipher_service",
    "get_token_refresher",
]
