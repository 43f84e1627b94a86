# memcore/api.py
import logging
from typing import Dict, List, Literal, Optional
from fastapi import BackgroundTasks, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from memcore.config import RETRIEVE_K, SIMILARITY_THRESHOLD
from memcore.data_models import ExtractionConfig, SaveOptions
from memcore.database import get_db
from memcore.embeddings import EmbeddingProvider
from memcore.errors import NotFoundError, OwnershipError, StoreError, ValidationError
from memcore.llm import CompletionProvider
from memcore.memory_engine import MemoryEngine
from memcore.retriever import format_memory_context, record_memory_access
from memcore.store import MemoryStore
from memcore.summarizer import Summarizer

logger = logging.getLogger(__name__)


class SavePayload(BaseModel):
    user_id: str
    content: str
    source: Literal["user", "ai", "system"] = "user"
    validation_level: Literal["strict", "normal", "lenient"] = "normal"


class RetrievePayload(BaseModel):
    user_id: str
    context: str
    limit: int = RETRIEVE_K
    similarity_threshold: float = SIMILARITY_THRESHOLD
    adaptive: bool = False


class ExtractPayload(BaseModel):
    user_id: str
    messages: List[Dict]
    config: Optional[ExtractionConfig] = None


class UserPayload(BaseModel):
    user_id: str


class CleanupPayload(BaseModel):
    user_id: str
    action: Literal["dedup", "consolidate", "prune", "decay", "summarize"]


class SummarizePayload(BaseModel):
    content: str
    memory_type: Optional[str] = None


def record_access_in_background(session_factory, embedder, user_id: str, memory_ids: List[str]):
    db = session_factory()
    try:
        record_memory_access(MemoryStore(db, embedder), user_id, memory_ids)
    except StoreError:
        logger.warning("Background access bookkeeping failed for %s", user_id, exc_info=True)
    finally:
        db.close()


def create_app(session_factory, embedder: EmbeddingProvider,
               completer: Optional[CompletionProvider] = None) -> FastAPI:
    app = FastAPI(title="memcore")

    def db_session():
        yield from get_db(session_factory)

    def engine_for(db: Session = Depends(db_session)) -> MemoryEngine:
        return MemoryEngine(db, embedder, completer)

    @app.exception_handler(ValidationError)
    def _bad_request(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(OwnershipError)
    def _forbidden(request: Request, exc: OwnershipError):
        return JSONResponse(status_code=403, content={"error": str(exc)})

    @app.exception_handler(NotFoundError)
    def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(StoreError)
    def _store_failed(request: Request, exc: StoreError):
        logger.error("Store failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "memory store unavailable"})

    @app.get("/")
    def root():
        return {"service": "memcore", "status": "ready"}

    @app.post("/memory/save")
    def save(payload: SavePayload, engine: MemoryEngine = Depends(engine_for)):
        options = SaveOptions(source=payload.source, validation_level=payload.validation_level)
        memory = engine.save_memory(payload.user_id, payload.content, options)
        return {"success": True, "memory": memory.model_dump(mode="json")}

    @app.post("/memory/retrieve")
    def retrieve(payload: RetrievePayload, background_tasks: BackgroundTasks,
                 engine: MemoryEngine = Depends(engine_for)):
        def defer(ids):
            background_tasks.add_task(record_access_in_background, session_factory, embedder,
                                      payload.user_id, ids)

        memories = engine.retrieve_relevant(payload.user_id, payload.context, payload.limit,
                                            payload.similarity_threshold, payload.adaptive, defer=defer)
        return {
            "memories": [m.model_dump(mode="json") for m in memories],
            "context": format_memory_context(memories),
        }

    @app.post("/memory/extract")
    def extract(payload: ExtractPayload, engine: MemoryEngine = Depends(engine_for)):
        saved = engine.save_from_messages(payload.user_id, payload.messages, payload.config)
        return {"saved": [m.model_dump(mode="json") for m in saved]}

    @app.get("/memory/list")
    def list_memories(user_id: str, memory_type: Optional[str] = None, limit: Optional[int] = None,
                      offset: int = 0, engine: MemoryEngine = Depends(engine_for)):
        memories = engine.list_memories(user_id, memory_type, limit, offset)
        return {"memories": [m.model_dump(mode="json") for m in memories]}

    @app.delete("/memory/{memory_id}")
    def delete(memory_id: str, user_id: str, engine: MemoryEngine = Depends(engine_for)):
        engine.delete_memory(user_id, memory_id)
        return {"success": True}

    @app.post("/memory/{memory_id}/access")
    def access(memory_id: str, payload: UserPayload, engine: MemoryEngine = Depends(engine_for)):
        memory = engine.record_access(payload.user_id, memory_id)
        return {"memory": memory.model_dump(mode="json")}

    @app.post("/memory/optimize")
    def optimize(payload: UserPayload, engine: MemoryEngine = Depends(engine_for)):
        return engine.optimize(payload.user_id).model_dump()

    @app.post("/memory/cleanup")
    def cleanup(payload: CleanupPayload, engine: MemoryEngine = Depends(engine_for)):
        return {"action": payload.action, "count": engine.cleanup(payload.user_id, payload.action)}

    @app.post("/memory/regenerate-embeddings")
    def regenerate(payload: UserPayload, engine: MemoryEngine = Depends(engine_for)):
        return {"updated": engine.regenerate_embeddings(payload.user_id)}

    @app.post("/memory/summarize")
    def summarize(payload: SummarizePayload):
        if completer is None:
            return {"summary": payload.content, "summarized": False}
        summarizer = Summarizer(completer)
        if payload.memory_type:
            summary = summarizer.summarize_memory_with_type(payload.content, payload.memory_type)
        else:
            summary = summarizer.summarize_memory(payload.content)
        return {"summary": summary, "summarized": summary != payload.content}

    @app.get("/memory/stats")
    def stats(user_id: str, engine: MemoryEngine = Depends(engine_for)):
        return engine.stats(user_id).model_dump(mode="json")

    @app.get("/memory/efficiency")
    def efficiency(user_id: str, engine: MemoryEngine = Depends(engine_for)):
        return engine.efficiency(user_id).model_dump()

    @app.get("/memory/clusters")
    def list_clusters(user_id: str, engine: MemoryEngine = Depends(engine_for)):
        return {"clusters": [c.model_dump(mode="json") for c in engine.clusters(user_id)]}

    @app.get("/memory/clusters/{cluster_id}")
    def cluster_detail(cluster_id: str, user_id: str, engine: MemoryEngine = Depends(engine_for)):
        memories = engine.cluster_memories(user_id, cluster_id)
        return {"memories": [m.model_dump(mode="json") for m in memories]}

    return app
