"""Expose constructed client wrappers."""

from .aws_sqs import SQSClient
from .google_auth import GoogleOAuthClient, OAuthStateEncoder, OAuthTokenExchangeError, TokenGrant
from .google_calendar import GoogleCalendarClient, GoogleCalendarError
from .local_queue import SQLiteQueueClient
from .slack import SlackReporter
from .sqlite_store import SQLiteDatabase

__all__ = [
    "GoogleCalendarClient",
    "GoogleCalendarError",
    "GoogleOAuthClient",
    "OAuthStateEncoder",
    "OAuthTokenExchangeError",
    "SQLiteDatabase",
    "SQLiteQueueClient",
    "SQSClient",
    "SlackReporter",
    "TokenGrant",
]
