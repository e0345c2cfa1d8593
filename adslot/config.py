"""Core application configuration & tunable booking rules.

Everything that an operator may want to tune (slot capacity, the daily slot
grid, commission, decline validation, lifecycle schedule and retention) lives
here as module constants so service code never hardcodes them. Values can be
overridden via environment variables; dicts are left mutable so tests can
monkeypatch individual entries.
"""
from __future__ import annotations

import os


def _env_bool(name: str, default: str) -> bool:
	return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


# ------------------------------- Time slots ------------------------------- #
SLOT_SETTINGS: dict[str, int] = {
	# Adverts allowed per slot per calendar day. System-wide, not stored per row.
	"capacity_per_day": int(os.getenv("SLOT_CAPACITY_PER_DAY", "2")),
	# Hourly grid seeded at startup, inclusive on both ends (06:00 .. 20:00).
	"first_hour": int(os.getenv("SLOT_FIRST_HOUR", "6")),
	"last_hour": int(os.getenv("SLOT_LAST_HOUR", "20")),
	# Upper bound on the vacancy lookup window.
	"max_vacancy_range_days": int(os.getenv("SLOT_MAX_VACANCY_RANGE_DAYS", "62")),
}

# -------------------------------- Booking --------------------------------- #
BOOKING_SETTINGS: dict[str, float | int | str] = {
	"commission_rate": float(os.getenv("COMMISSION_RATE", "0.10")),  # 10% of amount paid
	"decline_reason_min_length": 10,
	"notes_max_length": 500,
	"default_page_size": 15,
	"max_page_size": 100,
	"default_payment_method": "cash",
}

# ------------------------------- Lifecycle -------------------------------- #
LIFECYCLE_SETTINGS: dict[str, int | bool | str] = {
	# Disabled in tests / one-off scripts; the API process normally owns the scheduler.
	"enable_scheduler": _env_bool("ENABLE_SCHEDULER", "true"),
	# Daily remaining-days sweep, shortly after midnight.
	"sweep_hour": 0,
	"sweep_minute": 1,
	# Weekly pruning of old assignment rows (APScheduler day_of_week syntax).
	"cleanup_day_of_week": "sun",
	"cleanup_hour": 2,
	"cleanup_minute": 0,
	"assignment_retention_days": int(os.getenv("ASSIGNMENT_RETENTION_DAYS", "30")),
	# Reminder for adverts whose run ends tomorrow.
	"expiry_notice_hour": 9,
	"expiry_notice_minute": 0,
}

# Calendar dates ("today") and cron triggers are evaluated in this zone.
SCHEDULE_TIMEZONE: str = os.getenv("SCHEDULE_TIMEZONE", "UTC")

# ------------------------------- Bootstrap -------------------------------- #
# When both are set an admin user with this API key is ensured at startup.
ADMIN_BOOTSTRAP_EMAIL: str | None = os.getenv("ADMIN_BOOTSTRAP_EMAIL") or None
ADMIN_BOOTSTRAP_API_KEY: str | None = os.getenv("ADMIN_BOOTSTRAP_API_KEY") or None

# ------------------------------ HTTP / logging ---------------------------- #
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str | None = os.getenv("LOG_FILE", "logs/adslot.log") or None
CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

__all__ = [
	"SLOT_SETTINGS",
	"BOOKING_SETTINGS",
	"LIFECYCLE_SETTINGS",
	"SCHEDULE_TIMEZONE",
	"ADMIN_BOOTSTRAP_EMAIL",
	"ADMIN_BOOTSTRAP_API_KEY",
	"LOG_LEVEL",
	"LOG_FILE",
	"CORS_ORIGINS",
]
