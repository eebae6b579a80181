from sqlalchemy import Column, Integer, String, DateTime, Index, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ViewAnalyticsDB(Base):
    """
    ORM Model - append-only event log, one row per content interaction
    """
    __tablename__ = 'view_analytics'

    id = Column(Integer, primary_key=True)
    content_id = Column(String(50), nullable=False)  # TMDB id as sent by the client
    content_type = Column(String(20), nullable=False)  # movie | tv_series
    user_id = Column(Integer, nullable=True)
    action_type = Column(String(20), nullable=False)  # VIEW | CLICK | PLAY | COMPLETE
    content_title = Column(String(255))
    duration = Column(Integer)  # seconds
    ip_address = Column(String(100))
    user_agent = Column(String(512))
    device_type = Column(String(50), nullable=False)  # mobile | desktop | unknown
    country = Column(String(50))
    # "metadata" is reserved on declarative classes
    event_metadata = Column("metadata", JSONB, nullable=False, server_default="{}")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_view_analytics_content", "content_id", "content_type"),
        Index("ix_view_analytics_user_action", "user_id", "action_type"),
        Index("ix_view_analytics_created_at", "created_at"),
        Index("ix_view_analytics_content_action_created", "content_id", "action_type", "created_at"),
    )
