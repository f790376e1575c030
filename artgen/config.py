import os
import tempfile
from dotenv import load_dotenv

load_dotenv()

# AWS resources - loaded from .env
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
ARTGEN_TABLE = os.getenv("ARTGEN_TABLE")
ARTGEN_BUCKET = os.getenv("ARTGEN_BUCKET")
QUEUE_URL = os.getenv("QUEUE_URL")

# Runtime
STAGING_ROOT = os.getenv("STAGING_ROOT", os.path.join(tempfile.gettempdir(), "artgen"))
BATCH_SIZE = int(os.getenv("BATCH_SIZE", "50"))
PREFETCH_WORKERS = int(os.getenv("PREFETCH_WORKERS", "8"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Engine constants
TRAIT_VALUE_RARITY_PRECISION = 4  # digits after the decimal point
RANDOM_VALUE_MAX_ATTEMPTS = 10
UNIQUE_DRAW_MAX_ATTEMPTS = 20
NO_TRAIT_SET = "-1"  # wire value for "not scoped to a trait set"
