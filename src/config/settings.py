from datetime import timedelta
from decimal import Decimal
from pathlib import Path

from decouple import Csv, config
from dj_database_url import parse as db_url

from modules.core.structured_logging import build_logging_config, configure_structlog

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Security - Fail Fast: no default forces explicit configuration
SECRET_KEY = config("SECRET_KEY")

DEBUG = config("DEBUG", default=False, cast=bool)

ALLOWED_HOSTS = config("ALLOWED_HOSTS", default="127.0.0.1,localhost", cast=Csv())

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party
    "rest_framework",
    "corsheaders",
    "django_filters",
    "drf_spectacular",
    # Local Apps (Modules)
    "modules.core",
    "modules.products",
    "modules.cart",
    "modules.orders",
    "modules.payments",
    "modules.shipping",
    "modules.notifications",
    "modules.reports",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "modules.core.middleware.CorrelationIdMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": config(
        "DATABASE_URL", default=f'sqlite:///{BASE_DIR / "db.sqlite3"}', cast=db_url
    )
}

# Cache - Redis (also backs the cart store)
REDIS_URL = config("REDIS_URL", default="redis://localhost:6379/0")

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": REDIS_URL,
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
        },
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"
    },
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "pt-br"
TIME_ZONE = "America/Sao_Paulo"
USE_I18N = True
USE_TZ = True

# ---------------------------------------------------------------------------
# Celery (notification fan-out via Redis)
# ---------------------------------------------------------------------------
CELERY_BROKER_URL = config("CELERY_BROKER_URL", default="redis://localhost:6379/0")
CELERY_RESULT_BACKEND = config(
    "CELERY_RESULT_BACKEND", default="redis://localhost:6379/0"
)
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# DRF Configuration. Fail closed: everything requires auth by default
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "modules.core.authentication.IdentityProviderAuthentication",
        "rest_framework_simplejwt.authentication.JWTAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_THROTTLE_CLASSES": [
        "rest_framework.throttling.AnonRateThrottle",
        "rest_framework.throttling.UserRateThrottle",
        "rest_framework.throttling.ScopedRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "anon": "1000/day",
        "user": "1000/hour",
        "checkout": "10/minute",
        "order_listing": "100/minute",
        "payment_webhook": "600/minute",
    },
    "DEFAULT_PAGINATION_CLASS": "modules.core.pagination.StandardResultsSetPagination",
    "PAGE_SIZE": config("DEFAULT_PAGE_SIZE", default=20, cast=int),
    "DEFAULT_FILTER_BACKENDS": ["django_filters.rest_framework.DjangoFilterBackend"],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

if DEBUG:
    REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"].append(
        "rest_framework.renderers.BrowsableAPIRenderer"
    )

# ---------------------------------------------------------------------------
# SimpleJWT (local JWT for dev/test)
# ---------------------------------------------------------------------------
SIMPLE_JWT = {
    "ALGORITHM": "HS256",
    "SIGNING_KEY": SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=15),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
}

# ---------------------------------------------------------------------------
# External identity provider (OIDC tenant)
# ---------------------------------------------------------------------------
IDENTITY_DOMAIN = config("IDENTITY_DOMAIN", default="")
IDENTITY_AUDIENCE = config("IDENTITY_AUDIENCE", default="")
IDENTITY_ALGORITHM = config("IDENTITY_ALGORITHM", default="RS256")
IDENTITY_ROLES_CLAIM = config(
    "IDENTITY_ROLES_CLAIM", default="https://gessielegance.com/roles"
)

# CORS
CORS_ALLOWED_ORIGINS = config(
    "CORS_ALLOWED_ORIGINS", default="http://localhost:3000", cast=Csv()
)

# CSRF
CSRF_TRUSTED_ORIGINS = config(
    "CSRF_TRUSTED_ORIGINS", default="http://localhost:3000", cast=Csv()
)

# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
STORE_NAME = config("STORE_NAME", default="GessiElegance")
STORE_URL = config("STORE_URL", default="https://gessielegance.com")
STORE_WHATSAPP_NUMBER = config("STORE_WHATSAPP_NUMBER", default="+55 98 985381823")
DEFAULT_FROM_EMAIL = config(
    "DEFAULT_FROM_EMAIL", default="contato@gessielegance.com.br"
)
EMAIL_BACKEND = config(
    "EMAIL_BACKEND", default="django.core.mail.backends.smtp.EmailBackend"
)
EMAIL_HOST = config("EMAIL_HOST", default="localhost")
EMAIL_PORT = config("EMAIL_PORT", default=25, cast=int)
EMAIL_HOST_USER = config("EMAIL_HOST_USER", default="")
EMAIL_HOST_PASSWORD = config("EMAIL_HOST_PASSWORD", default="")
EMAIL_USE_TLS = config("EMAIL_USE_TLS", default=False, cast=bool)

# ---------------------------------------------------------------------------
# Orders, inventory and reporting
# ---------------------------------------------------------------------------
# "reject" refuses a decrement larger than the available stock;
# "clamp" floors the stock at zero.
INVENTORY_OVERSELL_POLICY = config("INVENTORY_OVERSELL_POLICY", default="reject")
DEFAULT_COST_RATIO = config("DEFAULT_COST_RATIO", default="0.5", cast=Decimal)
CART_TTL_DAYS = config("CART_TTL_DAYS", default=30, cast=int)

# ---------------------------------------------------------------------------
# Outbound HTTP (payment gateway, shipping quotes, WhatsApp)
# ---------------------------------------------------------------------------
HTTP_TIMEOUT_SECS = config("HTTP_TIMEOUT_SECS", default=10.0, cast=float)
HTTP_RETRY_MAX = config("HTTP_RETRY_MAX", default=3, cast=int)
HTTP_RETRY_BACKOFF_BASE = config("HTTP_RETRY_BACKOFF_BASE", default=0.15, cast=float)
HTTP_RETRY_MAX_SLEEP = config("HTTP_RETRY_MAX_SLEEP", default=2.0, cast=float)

ASAAS_API_URL = config("ASAAS_API_URL", default="https://api.asaas.com/v3")
ASAAS_API_KEY = config("ASAAS_API_KEY", default="")
ASAAS_WEBHOOK_TOKEN = config("ASAAS_WEBHOOK_TOKEN", default="")
PAYMENT_DUE_DAYS = config("PAYMENT_DUE_DAYS", default=1, cast=int)

SUPERFRETE_API_URL = config(
    "SUPERFRETE_API_URL", default="https://api.superfrete.com/api/v0"
)
SUPERFRETE_TOKEN = config("SUPERFRETE_TOKEN", default="")
SUPERFRETE_SERVICES = config("SUPERFRETE_SERVICES", default="1,2,17")
SHIPPING_ORIGIN_ZIP = config("SHIPPING_ORIGIN_ZIP", default="65058619")
FREE_SHIPPING_ABOVE = config(
    "FREE_SHIPPING_ABOVE", default="", cast=lambda v: Decimal(v) if v else None
)

WHATSAPP_API_URL = config("WHATSAPP_API_URL", default="")
WHATSAPP_API_TOKEN = config("WHATSAPP_API_TOKEN", default="")

# ---------------------------------------------------------------------------
# drf-spectacular (OpenAPI / Swagger)
# ---------------------------------------------------------------------------
SPECTACULAR_SETTINGS = {
    "TITLE": "Storefront API",
    "DESCRIPTION": "API de vitrine, PDV e retaguarda: catálogo, pedidos e pagamentos.",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "SECURITY": [{"BearerAuth": []}],
    "APPEND_COMPONENTS": {
        "securitySchemes": {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
            }
        }
    },
}

# ---------------------------------------------------------------------------
# Logging: JSON lines through structlog, sensitive values masked
# ---------------------------------------------------------------------------
configure_structlog()

LOGGING = build_logging_config(config("LOG_LEVEL", default="INFO"))
