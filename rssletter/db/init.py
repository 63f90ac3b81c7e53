"""Database initialization and schema management."""

import logging

from psycopg.errors import DatabaseError

from .connection import Database

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
-- Feeds table
CREATE TABLE IF NOT EXISTS feeds (
    feed_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    url TEXT NOT NULL,
    enabled BOOLEAN NOT NULL DEFAULT TRUE,
    refresh_interval_minutes INTEGER NOT NULL DEFAULT 60 CHECK (refresh_interval_minutes > 0),
    last_fetched_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Articles table; guid is the cross-feed deduplication key
CREATE TABLE IF NOT EXISTS rss_articles (
    id SERIAL PRIMARY KEY,
    guid TEXT NOT NULL UNIQUE,
    primary_feed_id TEXT NOT NULL,
    source_feed_ids TEXT[] NOT NULL CHECK (cardinality(source_feed_ids) > 0),
    title TEXT NOT NULL,
    link TEXT NOT NULL,
    content TEXT,
    summary TEXT,
    pub_date TIMESTAMPTZ NOT NULL,
    author TEXT,
    categories TEXT[] NOT NULL DEFAULT '{}',
    image_url TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Saved newsletters
CREATE TABLE IF NOT EXISTS newsletters (
    id SERIAL PRIMARY KEY,
    feed_ids TEXT[] NOT NULL,
    start_date TIMESTAMPTZ NOT NULL,
    end_date TIMESTAMPTZ NOT NULL,
    user_input TEXT,
    article_count INTEGER NOT NULL DEFAULT 0,
    suggested_titles TEXT[] NOT NULL CHECK (cardinality(suggested_titles) = 5),
    suggested_subject_lines TEXT[] NOT NULL CHECK (cardinality(suggested_subject_lines) = 5),
    body TEXT NOT NULL,
    top_announcements TEXT[] NOT NULL CHECK (cardinality(top_announcements) = 5),
    additional_info TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_rss_articles_primary_feed_id ON rss_articles(primary_feed_id);
CREATE INDEX IF NOT EXISTS idx_rss_articles_source_feed_ids ON rss_articles USING GIN (source_feed_ids);
CREATE INDEX IF NOT EXISTS idx_rss_articles_pub_date ON rss_articles(pub_date DESC);
CREATE INDEX IF NOT EXISTS idx_newsletters_created_at ON newsletters(created_at DESC);

-- Update trigger function
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ language 'plpgsql';

-- Create update triggers
CREATE OR REPLACE TRIGGER update_feeds_updated_at BEFORE UPDATE ON feeds
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_rss_articles_updated_at BEFORE UPDATE ON rss_articles
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER update_newsletters_updated_at BEFORE UPDATE ON newsletters
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
"""


def validate_connection(database: Database) -> bool:
    """Validate database connection."""
    try:
        with database.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


def init_database(database: Database) -> None:
    """Initialize database schema."""
    try:
        with database.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            conn.commit()
            logger.info("Database schema initialized successfully")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise
