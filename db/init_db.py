"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Realms: top-level groupings for spells/eggs
CREATE TABLE IF NOT EXISTS realms (
    id              SERIAL PRIMARY KEY,
    name            VARCHAR(255) NOT NULL,
    description     TEXT,
    logo            VARCHAR(255),
    author          VARCHAR(255),
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Locations: physical/logical placement of nodes
CREATE TABLE IF NOT EXISTS locations (
    id              SERIAL PRIMARY KEY,
    name            VARCHAR(255) NOT NULL,
    description     TEXT,
    flag_code       VARCHAR(10),
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Mail queue: outgoing mails picked up by the mail sender cron
CREATE TABLE IF NOT EXISTS mail_queue (
    id              SERIAL PRIMARY KEY,
    user_uuid       VARCHAR(36) NOT NULL,
    subject         VARCHAR(255) NOT NULL,
    body            TEXT NOT NULL,
    status          VARCHAR(20) NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'sent', 'failed')),
    locked          BOOLEAN NOT NULL DEFAULT FALSE,
    deleted         BOOLEAN NOT NULL DEFAULT FALSE,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);

-- OIDC providers: external single sign-on issuers
CREATE TABLE IF NOT EXISTS oidc_providers (
    uuid                    VARCHAR(36) PRIMARY KEY,
    name                    VARCHAR(255) NOT NULL,
    issuer_url              VARCHAR(512) NOT NULL,
    client_id               VARCHAR(255) NOT NULL,
    client_secret           TEXT NOT NULL,
    scopes                  VARCHAR(255) NOT NULL DEFAULT 'openid email profile',
    email_claim             VARCHAR(64) NOT NULL DEFAULT 'email',
    subject_claim           VARCHAR(64) NOT NULL DEFAULT 'sub',
    group_claim             VARCHAR(64),
    group_value             VARCHAR(255),
    auto_provision          BOOLEAN NOT NULL DEFAULT FALSE,
    require_email_verified  BOOLEAN NOT NULL DEFAULT FALSE,
    enabled                 BOOLEAN NOT NULL DEFAULT FALSE,
    created_at              TIMESTAMPTZ DEFAULT NOW(),
    updated_at              TIMESTAMPTZ DEFAULT NOW()
);

-- Chatbot messages: one row per turn of a conversation
CREATE TABLE IF NOT EXISTS chatbot_messages (
    id              SERIAL PRIMARY KEY,
    conversation_id INT NOT NULL,
    role            VARCHAR(20) NOT NULL CHECK (role IN ('user', 'assistant', 'system')),
    content         TEXT,
    model           VARCHAR(100),
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_chatbot_messages_conversation ON chatbot_messages(conversation_id, created_at);
CREATE INDEX IF NOT EXISTS idx_mail_queue_user ON mail_queue(user_uuid);
CREATE INDEX IF NOT EXISTS idx_mail_queue_pending ON mail_queue(id) WHERE status = 'pending' AND locked = FALSE AND deleted = FALSE;
CREATE INDEX IF NOT EXISTS idx_oidc_providers_name ON oidc_providers(name);
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool, close_pool
    init_pool()
    create_tables()
    close_pool()
    print("Database schema created successfully.")
