"""
Local development settings.

Uploads stay on the local filesystem under MEDIA_ROOT and are served by
runserver, so the media endpoints work without a bucket.
"""
from config.settings.base import *  # noqa: F401, F403
from config.settings.base import BASE_DIR, STORAGES, TRIPSHARE, env

# ---------------------------------------------------------------------------
# Debug
# ---------------------------------------------------------------------------
DEBUG = True

ALLOWED_HOSTS = ['*']

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
DATABASES = {
    'default': env.db(
        'DATABASE_URL',
        default=f'sqlite:///{BASE_DIR / "db.sqlite3"}',
    )
}

# ---------------------------------------------------------------------------
# CORS - the mobile simulator and Expo web run on arbitrary ports
# ---------------------------------------------------------------------------
CORS_ALLOW_ALL_ORIGINS = True

# ---------------------------------------------------------------------------
# Media - local disk unless DEV_USE_S3 is set
# ---------------------------------------------------------------------------
if not env.bool('DEV_USE_S3', default=False):
    STORAGES = {
        **STORAGES,
        'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    }

TRIPSHARE = {
    **TRIPSHARE,
    'STORAGE_PROVIDER': 'apps.media.services.storage.DjangoStorageProvider',
}

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console'],
            'level': 'DEBUG',
            'propagate': False,
        },
        'common': {
            'handlers': ['console'],
            'level': 'DEBUG',
            'propagate': False,
        },
        'tripshare_client': {
            'handlers': ['console'],
            'level': 'DEBUG',
            'propagate': False,
        },
    },
}
