# memcore/models.py
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, JSON, ForeignKey
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow():
    # naive UTC; SQLite drops tzinfo on the way back anyway
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id():
    return str(uuid.uuid4())


class MemoryCluster(Base):
    __tablename__ = "memory_clusters"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    centroid_embedding = Column(JSON(none_as_null=True), nullable=True)
    memory_count = Column(Integer, default=0)
    average_relevance_score = Column(Float, default=0.0)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)


class Memory(Base):
    __tablename__ = "memories"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    content = Column(Text, nullable=False)
    embedding = Column(JSON(none_as_null=True), nullable=True)
    relevance_score = Column(Float, default=1.0, index=True)
    access_count = Column(Integer, default=0)
    last_accessed = Column(DateTime, nullable=True)
    semantic_tags = Column(JSON, default=list)
    memory_type = Column(String, default="general", index=True)
    importance_score = Column(Float, default=0.5)
    cluster_id = Column(String(36), ForeignKey("memory_clusters.id", ondelete="SET NULL"),
                        nullable=True, index=True)
    source = Column(String, default="user")
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "content": self.content,
            "relevance_score": self.relevance_score,
            "access_count": self.access_count or 0,
            "last_accessed": self.last_accessed,
            "semantic_tags": list(self.semantic_tags or []),
            "memory_type": self.memory_type,
            "importance_score": self.importance_score,
            "cluster_id": self.cluster_id,
            "source": self.source,
            "has_embedding": self.embedding is not None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
