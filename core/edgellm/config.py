"""Configuration settings for edgellm."""

from pathlib import Path

# Paths
DATA_DIR = Path.home() / ".edgellm"
MODELS_DIR = DATA_DIR / "models"

# Server
HOST = "127.0.0.1"
PORT = 7879

# API
API_PREFIX = "/api"
API_VERSION = "0.1.0"

# RAM tiers (MB), checked highest first
STANDARD_TIER_MIN_RAM_MB = 6 * 1024
COMPACT_TIER_MIN_RAM_MB = 4 * 1024
MINIMAL_TIER_MIN_RAM_MB = 3 * 1024

# Apple Foundation Models eligibility
FOUNDATION_MIN_IOS_MAJOR = 26
FOUNDATION_MIN_IPHONE_MAJOR = 16  # iPhone16,x = iPhone 15 Pro
FOUNDATION_MIN_IPAD_MAJOR = 14

# Downloads
DOWNLOAD_CHUNK_SIZE = 1024 * 1024
# Accepted on-disk size relative to the catalog estimate
MODEL_SIZE_MIN_RATIO = 0.80
MODEL_SIZE_MAX_RATIO = 1.20
