"""Django settings for running the travfd app standalone (and its test suite)."""

from pathlib import Path
import os


# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-secret-change-me")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get("DJANGO_DEBUG", "True").lower() in {"1", "true", "yes"}

ALLOWED_HOSTS = [host for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if host]


# Application definition

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    # Local apps
    'travfd',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}


# Cache
# The VFD bearer token lives here; use Redis when several workers share it.

REDIS_URL = os.environ.get("REDIS_URL")
if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_URL,
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'travfd',
        }
    }


# TRA VFD
# Any key left out falls back to the TRA_VFD_* environment variables.

TRAVFD = {
    'BASE_URL': os.environ.get("TRA_VFD_API_BASE", "https://virtual.tra.go.tz/efdmsRctApi"),
    'ENDPOINTS': {
        'register': '/api/vfdRegReq',
        'token': '/vfdtoken',
        'receipt': '/api/efdmsRctInfo',
        'z_report': '/api/efdmszreport',
        'verify': '/efdmsRctVerify/Home/Index',
    },
    'TIMEOUT': float(os.environ.get("TRA_VFD_TIMEOUT", "30")),
}


# Logging configuration

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
        },
    },
    'loggers': {
        'travfd': {
            'handlers': ['console'],
            'level': os.environ.get("TRA_VFD_LOG_LEVEL", "INFO"),
            'propagate': True,
        },
    },
}


# Internationalization

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'Africa/Dar_es_Salaam'

USE_I18N = True

USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
