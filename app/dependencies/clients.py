"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from app.clients import (
    GoogleCalendarClient,
    GoogleOAuthClient,
    OAuthStateEncoder,
    SlackReporter,
    SQLiteDatabase,
    SQLiteQueueClient,
    SQSClient,
)
from app.core.config import get_settings
from app.repositories import AuthorizationStore, CalendarStore, NotificationStore
from app.services import (
    CalendarSyncService,
    ConnectionRegistry,
    EventPublisher,
    NotificationWriter,
    QueueClient,
    TokenCipherService,
    TokenRefresher,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_database() -> SQLiteDatabase:
    """Provide the shared SQLite database handle."""
    return SQLiteDatabase(_settings().database_path)


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder derived from the Google client secret."""
    settings = _settings()
    return OAuthStateEncoder(secret_key=settings.google.client_secret)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    return GoogleOAuthClient(_settings().google)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.google.client_secret
    return TokenCipherService(
        secret=secret,
        previous_secrets=settings.security.previous_token_encryption_secrets,
    )


@lru_cache()
def get_authorization_store() -> AuthorizationStore:
    return AuthorizationStore(get_database(), get_token_cipher_service())


@lru_cache()
def get_calendar_store() -> CalendarStore:
    return CalendarStore(get_database())


@lru_cache()
def get_notification_store() -> NotificationStore:
    return NotificationStore(get_database())


@lru_cache()
def get_token_refresher() -> TokenRefresher:
    """Provide the token refresher backed by the authorization store."""
    settings = _settings()
    return TokenRefresher(
        store=get_authorization_store(),
        oauth_client=get_google_oauth_client(),
        oauth_settings=settings.oauth,
    )


@lru_cache()
def get_calendar_client() -> GoogleCalendarClient:
    return GoogleCalendarClient()


@lru_cache()
def get_slack_reporter() -> SlackReporter:
    settings = _settings()
    webhook_url = settings.slack.webhook_url
    return SlackReporter(
        str(webhook_url) if webhook_url else None,
        application_name=settings.google.application_name,
        timeout=settings.slack.timeout_seconds,
    )


@lru_cache()
def get_queue_client() -> QueueClient:
    """Provide SQS when a queue URL is configured, otherwise the SQLite queue."""
    settings = _settings()
    if settings.aws.event_queue_url:
        return SQSClient(settings.aws)
    return SQLiteQueueClient(get_database())


@lru_cache()
def get_event_publisher() -> EventPublisher:
    return EventPublisher(
        get_queue_client(),
        max_workers=_settings().event_publisher_max_workers,
    )


@lru_cache()
def get_connection_registry() -> ConnectionRegistry:
    """Process-wide registry of open notification streams."""
    return ConnectionRegistry()


@lru_cache()
def get_notification_writer() -> NotificationWriter:
    return NotificationWriter(get_notification_store(), get_connection_registry())


@lru_cache()
def get_calendar_sync_service() -> CalendarSyncService:
    """Build the calendar sync service using configured clients."""
    settings = _settings()
    return CalendarSyncService(
        store=get_calendar_store(),
        token_refresher=get_token_refresher(),
        calendar_client=get_calendar_client(),
        publisher=get_event_publisher(),
        reporter=get_slack_reporter(),
        service_account_email=settings.google.service_account_email,
        origin_domain=settings.google.origin_domain,
    )


__all__ = [
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
