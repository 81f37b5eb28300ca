"""Application settings."""

import os
from pathlib import Path

# Storage
DB_PATH = os.getenv("OECD_CACHE_DB_PATH", "oecd_cache.duckdb")
OVERFLOW_DIR = Path(os.getenv("OECD_CACHE_OVERFLOW_DIR", "overflow"))

# Logging
LOG_DIR = Path(os.getenv("OECD_CACHE_LOG_DIR", "logs"))
LOG_LEVEL = os.getenv("OECD_CACHE_LOG_LEVEL", "INFO")
LOG_ROTATION = "00:00"
LOG_RETENTION = "7 days"

# API
API_BASE_URL = os.getenv("OECD_API_BASE_URL", "https://sdmx.oecd.org/public/rest")
API_TIMEOUT = int(os.getenv("OECD_API_TIMEOUT", "60"))
API_MAX_CONCURRENT = int(os.getenv("OECD_API_MAX_CONCURRENT", "3"))

# Memory tier (seconds)
MEMORY_TTL = 60
MEMORY_SWEEP_INTERVAL = 60

# Freshness (seconds)
OBSERVATION_SHORT_TTL = 24 * 60 * 60
OBSERVATION_LONG_TTL = 7 * 24 * 60 * 60
METADATA_TTL = 30 * 24 * 60 * 60
RECENT_MONTHS = 3

# Durable / overflow tiers
OVERFLOW_THRESHOLD = int(os.getenv("OECD_CACHE_OVERFLOW_THRESHOLD", "10000"))
STORE_TIMEOUT = 5.0

# Access stats
STATS_RETENTION_DAYS = 30
STATS_PURGE_INTERVAL = 60 * 60
STATS_QUEUE_SIZE = 10_000
STATS_BATCH_SIZE = 500

# Prewarm
PREWARM_DELAY = 1.0
PREWARM_LAST_N = 100
PREWARM_DATAFLOWS = [
    d.strip()
    for d in os.getenv("OECD_PREWARM_DATAFLOWS", "QNA,MEI,PRICES_CPI,HEALTH_STAT,EO").split(",")
    if d.strip()
]
