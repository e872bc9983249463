"""
Django settings for the forumapi project.

Only the pieces the projection engine needs are configured here: the
installed apps, templates, logging and the link route table. There is no
URL configuration; transport lives outside this project.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-forumapi-development-key")

DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() in ("1", "true", "yes")

ALLOWED_HOSTS: list[str] = []

INSTALLED_APPS = [
    "forum",
    "projection",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("FORUMAPI_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {},
    },
]

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"

# Projection engine
# -----------------

PROJECTION_PUBLIC_BASE_URL = os.environ.get(
    "FORUMAPI_PUBLIC_BASE_URL", "https://forum.example.com/"
)
PROJECTION_API_BASE_URL = os.environ.get(
    "FORUMAPI_API_BASE_URL", "https://forum.example.com/api/"
)
PROJECTION_DATA_BASE_URL = os.environ.get(
    "FORUMAPI_DATA_BASE_URL", "https://forum.example.com/data/"
)

# link_type -> route -> [path prefix, entity field that fills the id segment]
PROJECTION_ROUTES = {
    "public": {
        "conversations": ["conversations", "conversation_id"],
        "conversation-messages": ["conversations/messages", "message_id"],
        "attachments": ["attachments", "attachment_id"],
        "members": ["members", "user_id"],
    },
    "api": {
        "conversations": ["conversations", "conversation_id"],
        "conversation-messages": ["conversation-messages", "message_id"],
        "attachments": ["attachments", "attachment_id"],
        "users": ["users", "user_id"],
    },
}

# Every label listed here must have exactly one handler at startup
PROJECTION_TRANSFORMABLE_MODELS = [
    "forum.ConversationMaster",
    "forum.ConversationMessage",
    "forum.ConversationRecipient",
    "forum.Attachment",
]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "{levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "projection": {
            "handlers": ["console"],
            "level": os.environ.get("FORUMAPI_LOG_LEVEL", "INFO"),
        },
        "forum": {
            "handlers": ["console"],
            "level": os.environ.get("FORUMAPI_LOG_LEVEL", "INFO"),
        },
    },
}
