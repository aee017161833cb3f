import os

# Database Configuration
# Defaults to a local SQLite file; point DATABASE_URL at Postgres in deployment
DB_URL = os.getenv("DATABASE_URL", "sqlite://rocket_ops.sqlite3")

# Application Metadata
PROJECT_NAME = "Rocket Ops Reconciliation Service"
VERSION = "1.0.0"

# Scheduler Configuration
# FULL_SYNC_INTERVAL is also the dashboard's "auto-sync interval" default
FULL_SYNC_INTERVAL = int(os.getenv("FULL_SYNC_INTERVAL", 30)) # seconds between full-sync ticks
DAILY_DIGEST_HOUR = int(os.getenv("DAILY_DIGEST_HOUR", 8)) # local hour for the daily task digest
OVERDUE_SCAN_INTERVAL = int(os.getenv("OVERDUE_SCAN_INTERVAL", 3600)) # seconds between overdue-task scans
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").strip().lower() in ("true", "1", "yes")

# Store Configuration
MAX_CAS_RETRIES = int(os.getenv("MAX_CAS_RETRIES", 5)) # Max optimistic-concurrency retries per write

# Skip completed purchase requests whose id was already synced into inventory
DEDUPE_COMPLETED_REQUESTS = os.getenv("DEDUPE_COMPLETED_REQUESTS", "true").strip().lower() in ("true", "1", "yes")

# Inventory synthesis defaults
REORDER_POINT_MULTIPLIER = 0.2 # 20% of purchased quantity
MIN_STOCK_MULTIPLIER = 0.1     # 10% of purchased quantity
MIN_REORDER_POINT = 5
MIN_MIN_STOCK = 3
LOW_STOCK_FALLBACK_THRESHOLD = 10 # used when an item has neither min_stock nor reorder_point
LOW_STOCK_MIN_ORDER_QTY = 10

DEFAULT_LOCATION = "Store A"
DEFAULT_CATEGORY = "General"
DEFAULT_TEAM = "Avionics"

# Notifications
DIGEST_WINDOW_DAYS = 7 # tasks due within this many days go into the daily digest
