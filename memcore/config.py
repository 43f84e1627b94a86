# memcore/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# Storage
DB_URL = os.getenv("MEMCORE_DB_URL", "sqlite:///data/memory.db")

# Providers
EMBEDDING_BACKEND = os.getenv("MEMCORE_EMBEDDING_BACKEND", "openai")  # openai, hashing
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_EMBEDDING_MODEL = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
OPENAI_COMPLETION_MODEL = os.getenv("OPENAI_COMPLETION_MODEL", "gpt-4-turbo-preview")
EMBED_DIM = int(os.getenv("MEMCORE_EMBED_DIM", "1536"))
MAX_EMBED_CHARS = 8192

LOG_LEVEL = os.getenv("MEMCORE_LOG_LEVEL", "INFO")

# Retrieval
RETRIEVE_K = int(os.getenv("MEMCORE_RETRIEVE_K", "5"))
SIMILARITY_THRESHOLD = float(os.getenv("MEMCORE_SIMILARITY_THRESHOLD", "0.3"))
TOKEN_BUDGET = int(os.getenv("MEMCORE_TOKEN_BUDGET", "300"))
ACCESS_BOOST = 1.1
SIMILARITY_TIE_MARGIN = 0.01

# Writer
DUPLICATE_THRESHOLD = float(os.getenv("MEMCORE_DUPLICATE_THRESHOLD", "0.9"))
SUMMARIZE_MIN_CHARS = int(os.getenv("MEMCORE_SUMMARIZE_MIN_CHARS", "200"))
CLUSTER_THRESHOLD = 0.7
MERGE_SEPARATOR = "\n\nAdditional information: "

# Maintenance
CONSOLIDATE_THRESHOLD = 0.9
DEDUP_THRESHOLD = 0.95
PRUNE_THRESHOLD = 0.3
ARCHIVED_RELEVANCE = 0.1
STALE_AFTER_DAYS = 30
MIN_ACCESS_TO_KEEP = 3
DECAY_FACTOR = float(os.getenv("MEMCORE_DECAY_FACTOR", "0.95"))
DECAY_IDLE_DAYS = 7
LOW_RELEVANCE_THRESHOLD = 0.4
