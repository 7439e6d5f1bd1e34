import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./charges.db")
    API_PREFIX = data.get("API_PREFIX", "/api/v1")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))

    # Payment gateway collaborator
    GATEWAY_BASE_URL = data.get("GATEWAY_BASE_URL", "")
    GATEWAY_API_KEY = data.get("GATEWAY_API_KEY", "")
    GATEWAY_TIMEOUT_SECONDS = data.get("GATEWAY_TIMEOUT_SECONDS", 10.0)

    # Gateway status synchronization
    SYNC_ENABLED = bool(data.get("SYNC_ENABLED", True))
    SYNC_MAX_ATTEMPTS = data.get("SYNC_MAX_ATTEMPTS", 3)
    SYNC_BACKOFF_SECONDS = data.get("SYNC_BACKOFF_SECONDS", [60, 300, 900])  # 1min, 5min, 15min
    SYNC_INTERVAL_SECONDS = data.get("SYNC_INTERVAL_SECONDS", 900)
    SYNC_BATCH_SIZE = data.get("SYNC_BATCH_SIZE", 200)
    SYNC_CONCURRENCY = data.get("SYNC_CONCURRENCY", 10)

    # Overdue charge expiry sweep
    EXPIRY_SWEEP_ENABLED = bool(data.get("EXPIRY_SWEEP_ENABLED", True))
    EXPIRY_SWEEP_INTERVAL_SECONDS = data.get("EXPIRY_SWEEP_INTERVAL_SECONDS", 3600)
    EXPIRY_SWEEP_BATCH_SIZE = data.get("EXPIRY_SWEEP_BATCH_SIZE", 500)

    # Charge notifications (ChargeCreated / ChargePaid observers)
    CHARGE_NOTIFICATION_WEBHOOK = data.get("CHARGE_NOTIFICATION_WEBHOOK", None)
