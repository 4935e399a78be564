"""
settings.py — Django project configuration for the Skinhost backend

What this file configures
===============================================================================
- Core Django wiring (INSTALLED_APPS, MIDDLEWARE, TEMPLATES, DB)
- REST Framework defaults (JWT auth, IsAuthenticated, filtering, pagination)
- SimpleJWT (access/refresh) + blacklist app (logout / password change
  invalidate refresh tokens)
- CORS for FE ↔ BE requests, CSP frame-ancestors
- Static + media handling (texture files), including optional S3 via django-storages
- Outgoing mail (verification emails)
- Site options defaults (OPTION_DEFAULTS) read by options.repository
- Plugins directory / assets URL / market registry
- Logging for the project apps

How environment variables drive behavior (deployment-safe)
===============================================================================
DJANGO_DEBUG            -> Enables dev mode when true. Defaults to True locally.
DJANGO_SECRET_KEY       -> Required when DJANGO_DEBUG=False (production).
DJANGO_ALLOWED_HOSTS    -> Comma-separated list of allowed hostnames in prod.
DJANGO_TIME_ZONE        -> Zone used for "local midnight" sign-in resets (default UTC).
DATABASE_URL            -> Postgres/MySQL URL; SQLite is used when unset.
APP_VERSION             -> Overrides the running application version (installation gate).
CORS_ALLOW_ALL_ORIGINS  -> Dev toggle to allow any origin (default True in dev).
CORS_ALLOWED_ORIGINS    -> Comma-separated list of exact origins (prod).
EMAIL_HOST / EMAIL_PORT / EMAIL_HOST_USER / EMAIL_HOST_PASSWORD / EMAIL_USE_TLS
                        -> SMTP transport for verification mails.
MAIL_FROM               -> Sender address (display name is the site_name option).
PLUGINS_DIR             -> Absolute path for loading plugins (default BASE_DIR/storage/plugins).
PLUGINS_URL             -> URL prefix serving plugin assets (default /plugins).
PLUGINS_REGISTRY        -> URL of the plugin market registry JSON.
USE_S3_MEDIA            -> When true, store texture files on S3 (django-storages).
APP_LOG_LEVEL           -> Level for the project loggers (default INFO).

Why some ordering matters
===============================================================================
- We compute DEBUG first so SECRET_KEY can enforce “prod requires a key.”
- SECRET_KEY only falls back to a dev key when DEBUG=True.
- Throttling is switched off under test runs (login/register are anonymous).

Options vs settings
===============================================================================
Settings are per-deployment and need a restart. Options (site name, sign-in
reward range, verification switch, ...) live in the database and can change at
runtime; OPTION_DEFAULTS documents every option and its default value.
"""

from pathlib import Path
from datetime import timedelta
from urllib.parse import urlparse
import os
import sys


# ---------------------------
# Helpers for env parsing
# ---------------------------
def _get_bool(env_key: str, default: bool = False) -> bool:
    """Parse booleans from env like '1', 'true', 'yes'."""
    raw = os.environ.get(env_key, str(default))
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}

def _get_list(env_key: str, default=None):
    """Parse comma-separated lists from env (e.g., 'a.com,b.com')."""
    if default is None:
        default = []
    raw = os.environ.get(env_key)
    if not raw:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]

def _origin_from(url: str) -> str:
    """Turn a full URL into an origin string (scheme://host[:port])."""
    p = urlparse(url or "")
    if not p.scheme or not p.hostname:
        return ""
    return f"{p.scheme}://{p.hostname}" + (f":{p.port}" if p.port else "")


BASE_DIR = Path(__file__).resolve().parent.parent

# Reads DJANGO_DEBUG from env. Defaults to True for dev.
DEBUG = _get_bool("DJANGO_DEBUG", True)

# The running application version. The installation gate compares it with the
# `version` option stored at install/update time.
APP_VERSION = os.environ.get("APP_VERSION", "3.2.0")

# `manage.py test` or a pytest run (argv[0] is the pytest entry point)
_argv0 = sys.argv[0] if sys.argv else ""
RUNNING_TESTS = "test" in sys.argv or "pytest" in _argv0


# --- Frontend URL & CORS/CSRF (dev-friendly defaults) ---
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173/")

CORS_ALLOW_ALL_ORIGINS = _get_bool("CORS_ALLOW_ALL_ORIGINS", DEBUG)

CORS_ALLOWED_ORIGINS = _get_list("CORS_ALLOWED_ORIGINS", [])
if not CORS_ALLOWED_ORIGINS and FRONTEND_URL:
    derived = _origin_from(FRONTEND_URL)
    if derived:
        CORS_ALLOWED_ORIGINS = [derived]

CSRF_TRUSTED_ORIGINS = _get_list("CSRF_TRUSTED_ORIGINS", [])
if not CSRF_TRUSTED_ORIGINS and FRONTEND_URL:
    derived = _origin_from(FRONTEND_URL)
    if derived:
        CSRF_TRUSTED_ORIGINS = [derived]

CORS_ALLOWED_ORIGIN_REGEXES = _get_list("CORS_ALLOWED_ORIGIN_REGEXES", [])

# Skin previews are embedded by the frontend, so allow it as a frame ancestor.
_allowed_ancestors = {"'self'"}
for o in CORS_ALLOWED_ORIGINS:
    if o:
        _allowed_ancestors.add(o)

# django-csp v4+ format:
CONTENT_SECURITY_POLICY = {
    "DIRECTIVES": {
        "frame-ancestors": sorted(_allowed_ancestors),
    }
}


# SECRET_KEY with safe production enforcement
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY") or (
    "django-insecure-skinhost-dev-key-3u$5!q9z+v0k@r2m#w7e^t1y8b6n4c" if DEBUG else None
)
if not SECRET_KEY:
    raise RuntimeError("DJANGO_SECRET_KEY must be set when DJANGO_DEBUG=False")


ALLOWED_HOSTS = _get_list("DJANGO_ALLOWED_HOSTS", [] if DEBUG else ["127.0.0.1"])


INSTALLED_APPS = [
    # Django core
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third-party
    'rest_framework',
    'corsheaders',
    'django_filters',                             # filtering backend for DRF
    'drf_yasg',                                   # Swagger/OpenAPI docs
    'rest_framework_simplejwt.token_blacklist',   # refresh-token blacklist

    # Local apps
    'options',
    'users',
    'plugins',
    'csp',
]

AUTH_USER_MODEL = "users.User"

SWAGGER_SETTINGS = {
    "USE_SESSION_AUTH": False,
    "SECURITY_DEFINITIONS": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Paste: Bearer <access-token>",
        }
    },
}

MIDDLEWARE = [
    # CORS should be as high as possible
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',

    'django.middleware.security.SecurityMiddleware',
    "csp.middleware.CSPMiddleware",
    'whitenoise.middleware.WhiteNoiseMiddleware',  # Serves static in prod
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',

    # Redirects to /setup or /setup/update until the schema is installed and current
    'options.middleware.InstallationGateMiddleware',
    # Imports enabled plugins' bootstrap.py once per process
    'plugins.middleware.PluginBootstrapMiddleware',
]

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "users.authentication.SessionVersionJWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "DEFAULT_FILTER_BACKENDS": (
        "django_filters.rest_framework.DjangoFilterBackend",
        "rest_framework.filters.SearchFilter",
        "rest_framework.filters.OrderingFilter",
    ),
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 10,
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
        "rest_framework.parsers.MultiPartParser",
    ],
    "DEFAULT_THROTTLE_CLASSES": [ "rest_framework.throttling.AnonRateThrottle" ],
    "DEFAULT_THROTTLE_RATES": {"anon": "10/min"},
}

# Disable throttling when running tests
if RUNNING_TESTS:
    REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(hours=6),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=7),
    "UPDATE_LAST_LOGIN": True,
}

ROOT_URLCONF = 'skinhost_backend.urls'
WSGI_APPLICATION = 'skinhost_backend.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,   # users/templates/mails/* for verification mails
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]


# --- Database (DATABASE_URL when set; SQLite otherwise) ---
import dj_database_url

DB_URL = os.environ.get("DATABASE_URL", "").strip()
IS_POSTGRES = DB_URL.startswith("postgres://") or DB_URL.startswith("postgresql://")

if DB_URL:
    DATABASES = {
        "default": dj_database_url.parse(
            DB_URL,
            conn_max_age=600,
            ssl_require=IS_POSTGRES,  # only apply SSL flag for Postgres URLs
        )
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }


AUTHENTICATION_BACKENDS = [
    "django.contrib.auth.backends.ModelBackend",
]

# Length rules (6–32 / 8–32) are enforced by the profile serializers.
AUTH_PASSWORD_VALIDATORS = []

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get("DJANGO_TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True

# Static & media
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / "staticfiles"

MEDIA_URL = "/media/"
MEDIA_ROOT = BASE_DIR / "media"

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

# --- S3 media storage (optional; prod) ---
USE_S3 = _get_bool("USE_S3_MEDIA", False)

if USE_S3:
    INSTALLED_APPS += ["storages"]
    STORAGES["default"] = {"BACKEND": "storages.backends.s3.S3Storage"}
    AWS_STORAGE_BUCKET_NAME = os.environ.get("AWS_STORAGE_BUCKET_NAME")
    AWS_S3_REGION_NAME = os.environ.get("AWS_S3_REGION_NAME", "us-east-1")
    AWS_QUERYSTRING_AUTH = _get_bool("AWS_QUERYSTRING_AUTH", False)  # textures are public-read
    AWS_S3_FILE_OVERWRITE = False
    AWS_DEFAULT_ACL = None

    AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY")

    AWS_S3_CUSTOM_DOMAIN = os.environ.get("AWS_S3_CUSTOM_DOMAIN")
    if AWS_S3_CUSTOM_DOMAIN:
        MEDIA_URL = f"https://{AWS_S3_CUSTOM_DOMAIN}/"
    else:
        MEDIA_URL = f"https://{AWS_STORAGE_BUCKET_NAME}.s3.{AWS_S3_REGION_NAME}.amazonaws.com/"


# --- Mail (verification emails) ---
EMAIL_BACKEND = os.environ.get(
    "EMAIL_BACKEND",
    "django.core.mail.backends.console.EmailBackend" if DEBUG else "django.core.mail.backends.smtp.EmailBackend",
)
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.environ.get("EMAIL_PORT", "25"))
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = _get_bool("EMAIL_USE_TLS", False)
EMAIL_TIMEOUT = int(os.environ.get("EMAIL_TIMEOUT", "10"))
DEFAULT_FROM_EMAIL = os.environ.get("MAIL_FROM", "noreply@localhost")


# --- Site options (runtime, stored in options.Option) ---
# Every option the code reads is listed here with its default. Values found in
# the database override these; unset keys fall back to them. The type of the
# default decides how the stored text is coerced (bool / int / str).
OPTION_DEFAULTS = {
    "site_name": "Skinhost",
    "site_url": "http://localhost:8000",
    "announcement": "",
    "user_can_register": True,
    "require_verification": False,
    "user_initial_score": 1000,
    "score_per_storage": 1,          # score charged per KB of texture storage
    "sign_score": "10,100",          # "min,max" reward range for a daily sign-in
    "sign_gap_time": 24,             # hours between two sign-ins
    "sign_after_zero": False,        # reset the cooldown at local midnight instead
    "plugins_enabled": "[]",         # JSON list of enabled plugin names
    "version": "",                   # schema version recorded at install/update
}

# Seconds a session must wait between two verification mails.
VERIFICATION_MAIL_INTERVAL = 60


# --- Plugins ---
PLUGINS = {
    # The absolute path for loading plugins.
    "directory": os.environ.get("PLUGINS_DIR") or str(BASE_DIR / "storage" / "plugins"),
    # The URL to access plugin's assets (CSS, JavaScript etc.).
    "url": os.environ.get("PLUGINS_URL") or "/plugins",
    # Where to get plugins' metadata for the plugin market.
    "registry": os.environ.get(
        "PLUGINS_REGISTRY", "https://work.prinzeugen.net/blessing-skin-server/plugins.json"
    ),
    "registry_timeout": 10,
}


APP_LOG_LEVEL = os.environ.get("APP_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "django.request": {  # 500s, 404s with exceptions
            "handlers": ["console"],
            "level": "ERROR",
            "propagate": True,
        },
        "django": {
            "handlers": ["console"],
            "level": "INFO",
        },
        "users": {"handlers": ["console"], "level": APP_LOG_LEVEL, "propagate": False},
        "options": {"handlers": ["console"], "level": APP_LOG_LEVEL, "propagate": False},
        "plugins": {"handlers": ["console"], "level": APP_LOG_LEVEL, "propagate": False},
    },
}
