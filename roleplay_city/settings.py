"""Django settings for the Roleplay City establishment backend.


The backend owns the in-fiction economy behind the chat app:
- Coin balances and bank transfers
- Establishment requests (hospital consultations, menu orders, bank documents)
  that wait for an employee or manager to approve them
- The daily prize roulette and the hospital's Rancho heal


Identity is supplied by the upstream auth provider; this service trusts the
X-Actor-Id header it forwards.
"""

import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.getenv("DEBUG", "1") in ("1", "true", "True", "yes")
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "*").split(",")
CSRF_TRUSTED_ORIGINS = os.getenv("CSRF_TRUSTED_ORIGINS", "").split(",") if os.getenv("CSRF_TRUSTED_ORIGINS") else []

def env_int(name, default):
	v = os.getenv(name)
	return int(v) if v not in (None, "") else default

#######################
# Panel secrets per establishment (set in env). Manager secrets are checked
# before employee secrets; an establishment may define only one of them.
ESTABLISHMENT_SECRETS = {
	"bank": {
		"employee": os.getenv("BANK_EMPLOYEE_SECRET", "dev-bank-secret"),
	},
	"hospital": {
		"manager": os.getenv("HOSPITAL_MANAGER_SECRET", "dev-hospital-secret"),
	},
	"restaurant": {
		"manager": os.getenv("RESTAURANT_MANAGER_SECRET", "dev-restaurant-manager"),
		"employee": os.getenv("RESTAURANT_EMPLOYEE_SECRET", "dev-restaurant-employee"),
	},
	"bar": {
		"manager": os.getenv("BAR_MANAGER_SECRET", "dev-bar-manager"),
		"employee": os.getenv("BAR_EMPLOYEE_SECRET", "dev-bar-employee"),
	},
	"bakery": {
		"manager": os.getenv("BAKERY_MANAGER_SECRET", "dev-bakery-manager"),
		"employee": os.getenv("BAKERY_EMPLOYEE_SECRET", "dev-bakery-employee"),
	},
}

# Lifetime of a signed panel grant (seconds)
PANEL_GRANT_MAX_AGE = env_int("PANEL_GRANT_MAX_AGE", 8 * 60 * 60)

# Cooldowns
ROULETTE_COOLDOWN_SECONDS = env_int("ROULETTE_COOLDOWN_SECONDS", 24 * 60 * 60)
RANCHO_COOLDOWN_SECONDS = env_int("RANCHO_COOLDOWN_SECONDS", 24 * 60 * 60)
# Establishments whose manager panel offers the Rancho
RANCHO_ESTABLISHMENTS = ["hospital"]

# Roulette: category weights and entries. Disease entries come from the Disease table.
ROULETTE_PRIZES = [
	{
		"name": "money",
		"weight": 10,
		"entries": [
			{"key": "money-500", "label": "R$ 500", "value": 500},
			{"key": "money-750", "label": "R$ 750", "value": 750},
			{"key": "money-1000", "label": "R$ 1.000", "value": 1000},
			{"key": "money-2500", "label": "R$ 2.500", "value": 2500},
			{"key": "money-5000", "label": "R$ 5.000", "value": 5000},
		],
	},
	{
		"name": "voucher",
		"weight": 20,
		"entries": [
			{"key": "voucher-restaurant", "label": "Vale Restaurante", "data": {"establishment": "restaurant"}},
			{"key": "voucher-bar", "label": "Vale Bar", "data": {"establishment": "bar"}},
			{"key": "voucher-bakery", "label": "Vale Padaria", "data": {"establishment": "bakery"}},
		],
	},
	{
		"name": "disease",
		"weight": 70,
		"entries": [],
	},
]
ROULETTE_MAX_DISEASES = 12

# Hospital consultation catalogue: id -> (label, health boost, cost)
CONSULTATION_TYPES = {
	"basic": {"label": "Consulta Básica", "health": 20, "cost": 100},
	"advanced": {"label": "Consulta Avançada", "health": 40, "cost": 200},
	"surgery": {"label": "Cirurgia Menor", "health": 60, "cost": 400},
	"intensive": {"label": "Tratamento Intensivo", "health": 80, "cost": 600},
	"complete": {"label": "Cura Completa", "health": 100, "cost": 800, "full": True},
}

# Stat decay: each stat moves by `delta` once per `interval_seconds`
STATS_DECAY = {
	"alcoholism": {"interval_seconds": 3 * 60, "delta": -2},
	"hunger": {"interval_seconds": 30 * 60, "delta": -5},
	"thirst": {"interval_seconds": 30 * 60, "delta": -5},
}

#######################


INSTALLED_APPS = [
	"django.contrib.admin",
	"django.contrib.auth",
	"django.contrib.contenttypes",
	"django.contrib.sessions",
	"django.contrib.messages",
	"django.contrib.staticfiles",
	# local apps
	"core",
	"api",
]


MIDDLEWARE = [
	"django.middleware.security.SecurityMiddleware",
	"django.contrib.sessions.middleware.SessionMiddleware",
	"django.middleware.common.CommonMiddleware",
	"django.contrib.auth.middleware.AuthenticationMiddleware",
	"django.contrib.messages.middleware.MessageMiddleware",
]


ROOT_URLCONF = "roleplay_city.urls"
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


WSGI_APPLICATION = "roleplay_city.wsgi.application"


DB_ENGINE = os.getenv("DB_ENGINE", "sqlite")
if DB_ENGINE == "postgres":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.getenv("POSTGRES_DB", "roleplay_city"),
            "USER": os.getenv("POSTGRES_USER", "roleplay_city"),
            "PASSWORD": os.getenv("POSTGRES_PASSWORD", "roleplay_city"),
            "HOST": os.getenv("POSTGRES_HOST", "localhost"),
            "PORT": os.getenv("POSTGRES_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOGGING = {
	"version": 1,
	"disable_existing_loggers": False,
	"formatters": {
		"plain": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
	},
	"handlers": {
		"console": {"class": "logging.StreamHandler", "formatter": "plain"},
	},
	"loggers": {
		"core": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": True},
		"api": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": True},
		"client": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": True},
	},
}


AUTH_PASSWORD_VALIDATORS = []


LANGUAGE_CODE = "pt-br"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True


STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Demo-wide constants: two seeded players with starting coins.
DEMO_ACTORS = [
	{"display_name": "Arthur", "balance": 1000},
	{"display_name": "Beatriz", "balance": 200},
]
