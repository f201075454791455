"""NewsIQ schema: profiles, articles, quizzes, gamification and chat tables.

Revision ID: 001_newsiq_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_newsiq_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Profiles ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id UUID PRIMARY KEY,
            username VARCHAR(64),
            full_name VARCHAR(128),
            avatar_url TEXT,
            email VARCHAR(320),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_profiles_username_lower
        ON profiles(LOWER(username)) WHERE username IS NOT NULL
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_preferences (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID UNIQUE NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            categories JSONB NOT NULL DEFAULT '[]',
            difficulty_level VARCHAR(16),
            content_format VARCHAR(32),
            notification_times JSONB NOT NULL DEFAULT '[]',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Articles ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS articles (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            title TEXT NOT NULL,
            summary TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL DEFAULT '',
            source JSONB NOT NULL DEFAULT '{}',
            author VARCHAR(256) NOT NULL DEFAULT '',
            category VARCHAR(32) NOT NULL,
            difficulty_level VARCHAR(16) NOT NULL DEFAULT 'beginner',
            image_url TEXT,
            read_time INTEGER NOT NULL DEFAULT 0,
            tags JSONB NOT NULL DEFAULT '[]',
            views_count INTEGER NOT NULL DEFAULT 0,
            published_at TIMESTAMPTZ DEFAULT NOW(),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_articles_category ON articles(category)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_articles_published ON articles(published_at DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_articles_views ON articles(views_count DESC)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_article_interactions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            article_id UUID NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
            is_read BOOLEAN NOT NULL DEFAULT false,
            is_saved BOOLEAN NOT NULL DEFAULT false,
            read_progress INTEGER NOT NULL DEFAULT 0,
            read_time INTEGER NOT NULL DEFAULT 0,
            interacted_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_article_interactions_user_id_article_id_key UNIQUE(user_id, article_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_interactions_user_read
        ON user_article_interactions(user_id) WHERE is_read
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_interactions_user_saved
        ON user_article_interactions(user_id) WHERE is_saved
    """)

    # --- Quizzes ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS quizzes (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            article_id UUID UNIQUE NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
            title TEXT NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS quiz_questions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            quiz_id UUID NOT NULL REFERENCES quizzes(id) ON DELETE CASCADE,
            article_id UUID NOT NULL,
            question_number INTEGER NOT NULL,
            question_text TEXT NOT NULL,
            options JSONB NOT NULL DEFAULT '[]',
            correct_answer INTEGER NOT NULL,
            explanation TEXT NOT NULL DEFAULT ''
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_quiz_questions_quiz
        ON quiz_questions(quiz_id, question_number)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS quiz_attempts (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            quiz_id UUID NOT NULL REFERENCES quizzes(id) ON DELETE CASCADE,
            score INTEGER NOT NULL CHECK (score BETWEEN 0 AND 100),
            answers JSONB NOT NULL DEFAULT '[]',
            completed_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_quiz_attempts_user ON quiz_attempts(user_id)")

    # --- Gamification ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL,
            criteria TEXT NOT NULL,
            icon_url VARCHAR(256) NOT NULL DEFAULT '',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_achievements (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            achievement_id UUID NOT NULL REFERENCES achievements(id) ON DELETE CASCADE,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_achievements_user_id_achievement_id_key UNIQUE(user_id, achievement_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS leaderboard_points (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID UNIQUE NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            points INTEGER NOT NULL DEFAULT 0,
            weekly_points INTEGER NOT NULL DEFAULT 0,
            monthly_points INTEGER NOT NULL DEFAULT 0,
            last_updated TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_leaderboard_points ON leaderboard_points(points DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_leaderboard_weekly ON leaderboard_points(weekly_points DESC)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS reading_streaks (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID UNIQUE NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_read_date DATE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Article chat ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS chat_sessions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            article_id UUID NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_chat_sessions_user_article ON chat_sessions(user_id, article_id)")
    op.execute("""
        CREATE TABLE IF NOT EXISTS chat_messages (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            session_id UUID NOT NULL REFERENCES chat_sessions(id) ON DELETE CASCADE,
            message TEXT NOT NULL,
            role VARCHAR(16) NOT NULL CHECK (role IN ('user', 'assistant')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_chat_messages_session ON chat_messages(session_id, created_at)")

    # --- Leaderboard view for reporting ---
    op.execute("""
        CREATE OR REPLACE VIEW leaderboard_view AS
        SELECT
            p.id,
            p.username,
            p.avatar_url,
            COALESCE(lp.points, 0) AS points,
            COALESCE(lp.weekly_points, 0) AS weekly_points,
            COALESCE(lp.monthly_points, 0) AS monthly_points,
            COALESCE(rs.current_streak, 0) AS current_streak,
            COALESCE(rs.longest_streak, 0) AS longest_streak,
            (SELECT COUNT(*) FROM user_article_interactions uai
              WHERE uai.user_id = p.id AND uai.is_read) AS articles_read,
            (SELECT COUNT(*) FROM quiz_attempts qa WHERE qa.user_id = p.id) AS quizzes_taken,
            (SELECT ROUND(AVG(qa.score), 1) FROM quiz_attempts qa WHERE qa.user_id = p.id) AS avg_quiz_score
        FROM profiles p
        LEFT JOIN leaderboard_points lp ON lp.user_id = p.id
        LEFT JOIN reading_streaks rs ON rs.user_id = p.id
    """)


def downgrade() -> None:
    op.execute("DROP VIEW IF EXISTS leaderboard_view")
    for table in (
        "chat_messages",
        "chat_sessions",
        "reading_streaks",
        "leaderboard_points",
        "user_achievements",
        "achievements",
        "quiz_attempts",
        "quiz_questions",
        "quizzes",
        "user_article_interactions",
        "articles",
        "user_preferences",
        "profiles",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
