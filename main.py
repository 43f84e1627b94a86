# main.py
import logging

from memcore.api import create_app
from memcore.config import LOG_LEVEL, OPENAI_API_KEY
from memcore.database import init_db
from memcore.embeddings import build_embedder
from memcore.llm import OpenAICompletionProvider

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

SessionLocal = init_db()
app = create_app(
    SessionLocal,
    embedder=build_embedder(),
    completer=OpenAICompletionProvider() if OPENAI_API_KEY else None,
)
