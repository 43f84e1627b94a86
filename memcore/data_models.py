# memcore/data_models.py
from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from memcore.config import DUPLICATE_THRESHOLD


class MemoryRecord(BaseModel):
    id: str
    user_id: str
    content: str
    relevance_score: float = 1.0
    access_count: int = 0
    last_accessed: Optional[datetime] = None
    semantic_tags: List[str] = Field(default_factory=list)
    memory_type: str = "general"
    importance_score: float = 0.5
    cluster_id: Optional[str] = None
    source: str = "user"
    has_embedding: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row, **extra):
        return cls(**row.to_dict(), **extra)


class SimilarMemory(MemoryRecord):
    similarity: float


class MemoryMatch(BaseModel):
    id: str
    content: str
    similarity: float


class ClusterRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    memory_count: int = 0
    average_relevance_score: float = 0.0
    created_at: datetime
    updated_at: Optional[datetime] = None


class SaveOptions(BaseModel):
    source: Literal["user", "ai", "system"] = "user"
    validation_level: Literal["strict", "normal", "lenient"] = "normal"
    summarize: bool = True
    detect_duplicates: bool = True
    duplicate_threshold: float = DUPLICATE_THRESHOLD
    assign_cluster: bool = True


class ExtractionConfig(BaseModel):
    extraction_threshold: float = 0.7
    max_memories_per_conversation: int = 3
    min_content_length: int = 10
    max_content_length: int = 1000
    enable_summarization: bool = True
    enable_duplicate_detection: bool = True


class MemoryCandidate(BaseModel):
    content: str
    confidence: float
    memory_type: str


class OptimizationResult(BaseModel):
    pruned: int = 0
    consolidated: int = 0
    total_memories: int = 0


class EfficiencyMetrics(BaseModel):
    total_memories: int = 0
    avg_relevance_score: float = 0.0
    low_relevance_count: int = 0
    duplicate_count: int = 0
    efficiency_score: int = 0


class MemoryStats(BaseModel):
    total_memories: int = 0
    total_clusters: int = 0
    avg_relevance_score: float = 0.0
    avg_importance_score: float = 0.0
    total_access_count: int = 0
    type_distribution: Dict[str, int] = Field(default_factory=dict)
    most_relevant_memories: List[MemoryRecord] = Field(default_factory=list)
