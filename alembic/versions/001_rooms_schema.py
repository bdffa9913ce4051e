"""Rooms schema: profiles, rooms, room_memberships, sessions.

room_memberships is keyed on (room_id, user_id): the store, not the
service, guarantees one membership per pair.

Revision ID: 001_rooms_schema
Revises:
Create Date: 2025-01-09
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_rooms_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Profiles ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id UUID PRIMARY KEY,
            display_name TEXT NOT NULL,
            avatar_url TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Rooms ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS rooms (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(100) NOT NULL,
            description VARCHAR(500),
            created_by UUID REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_rooms_created_by ON rooms(created_by)")

    # --- Room memberships ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS room_memberships (
            room_id UUID NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            role VARCHAR(16) NOT NULL DEFAULT 'member',
            joined_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (room_id, user_id),
            CONSTRAINT room_memberships_role_check CHECK (role IN ('owner', 'admin', 'member'))
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_room_memberships_user ON room_memberships(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_room_memberships_room ON room_memberships(room_id)")

    # --- Sessions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS sessions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            room_id UUID REFERENCES rooms(id) ON DELETE SET NULL,
            started_at TIMESTAMPTZ NOT NULL,
            ended_at TIMESTAMPTZ,
            duration_seconds INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT sessions_ended_after_started CHECK (ended_at IS NULL OR ended_at >= started_at),
            CONSTRAINT sessions_duration_non_negative CHECK (duration_seconds >= 0)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_sessions_user_id ON sessions(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_sessions_room_id ON sessions(room_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_sessions_started_at ON sessions(started_at DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_sessions_user_started ON sessions(user_id, started_at DESC)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS sessions CASCADE")
    op.execute("DROP TABLE IF EXISTS room_memberships CASCADE")
    op.execute("DROP TABLE IF EXISTS rooms CASCADE")
    op.execute("DROP TABLE IF EXISTS profiles CASCADE")
