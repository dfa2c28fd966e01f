"""Initial migration - create market data and news cache tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Daily currency rates
    op.create_table(
        "currency_rates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("from_currency", sa.String(10), nullable=False),
        sa.Column("to_currency", sa.String(10), nullable=False),
        sa.Column("exchange_rate", sa.Numeric(24, 10), nullable=False),
        sa.Column("bid_price", sa.Numeric(24, 10), nullable=True),
        sa.Column("ask_price", sa.Numeric(24, 10), nullable=True),
        sa.Column("time_zone", sa.String(50), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_currency_rates"),
        sa.UniqueConstraint(
            "from_currency",
            "to_currency",
            "date",
            name="uq_currency_rates_pair_date",
        ),
    )
    op.create_index("ix_currency_rates_date", "currency_rates", ["date"])

    # Daily commodity ETF quotes
    op.create_table(
        "commodity_prices",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("symbol", sa.String(20), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("price", sa.Numeric(20, 6), nullable=False),
        sa.Column("open_price", sa.Numeric(20, 6), nullable=True),
        sa.Column("high_price", sa.Numeric(20, 6), nullable=True),
        sa.Column("low_price", sa.Numeric(20, 6), nullable=True),
        sa.Column("previous_close", sa.Numeric(20, 6), nullable=True),
        sa.Column("change_amount", sa.Numeric(20, 6), nullable=True),
        sa.Column("change_percent", sa.Numeric(12, 6), nullable=True),
        sa.Column("volume", sa.BigInteger(), nullable=True),
        sa.Column("unit", sa.String(30), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_commodity_prices"),
        sa.UniqueConstraint("symbol", "date", name="uq_commodity_prices_symbol_date"),
    )
    op.create_index("ix_commodity_prices_date", "commodity_prices", ["date"])

    # News articles
    op.create_table(
        "news_articles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.String(64), nullable=False),
        sa.Column("title", sa.String(1000), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("snippet", sa.Text(), nullable=True),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("image_url", sa.String(2048), nullable=True),
        sa.Column("language", sa.String(10), nullable=False),
        sa.Column("published_at", sa.DateTime(), nullable=False),
        sa.Column("source", sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_news_articles"),
        sa.UniqueConstraint("uuid", name="uq_news_articles_uuid"),
    )
    op.create_index("ix_news_articles_published_at", "news_articles", ["published_at"])

    op.create_table(
        "news_categories",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("news_uuid", sa.String(64), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.ForeignKeyConstraint(
            ["news_uuid"],
            ["news_articles.uuid"],
            name="fk_news_categories_news_uuid_news_articles",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_news_categories"),
        sa.UniqueConstraint("news_uuid", "category", name="uq_news_categories_uuid_category"),
    )

    op.create_table(
        "news_entities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("news_uuid", sa.String(64), nullable=False),
        sa.Column("symbol", sa.String(50), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("exchange", sa.String(50), nullable=True),
        sa.Column("exchange_long", sa.String(255), nullable=True),
        sa.Column("country", sa.String(10), nullable=True),
        sa.Column("type", sa.String(50), nullable=True),
        sa.Column("industry", sa.String(100), nullable=True),
        sa.Column("match_score", sa.Float(), nullable=True),
        sa.Column("sentiment_score", sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(
            ["news_uuid"],
            ["news_articles.uuid"],
            name="fk_news_entities_news_uuid_news_articles",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_news_entities"),
    )
    op.create_index("ix_news_entities_news_uuid", "news_entities", ["news_uuid"])

    op.create_table(
        "news_entity_highlights",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("highlight", sa.Text(), nullable=False),
        sa.Column("sentiment", sa.Float(), nullable=True),
        sa.Column("highlighted_in", sa.String(50), nullable=True),
        sa.ForeignKeyConstraint(
            ["entity_id"],
            ["news_entities.id"],
            name="fk_news_entity_highlights_entity_id_news_entities",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_news_entity_highlights"),
    )
    op.create_index(
        "ix_news_entity_highlights_entity_id",
        "news_entity_highlights",
        ["entity_id"],
    )

    op.create_table(
        "news_similar",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("news_uuid", sa.String(64), nullable=False),
        sa.Column("similar_uuid", sa.String(64), nullable=False),
        sa.Column("similar_title", sa.String(1000), nullable=True),
        sa.Column("similar_published_at", sa.DateTime(), nullable=True),
        sa.Column("similar_source", sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(
            ["news_uuid"],
            ["news_articles.uuid"],
            name="fk_news_similar_news_uuid_news_articles",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_news_similar"),
    )
    op.create_index("ix_news_similar_news_uuid", "news_similar", ["news_uuid"])

    # Daily headline index
    op.create_table(
        "news_daily_cache",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("news_uuid", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("is_headline", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(
            ["news_uuid"],
            ["news_articles.uuid"],
            name="fk_news_daily_cache_news_uuid_news_articles",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_news_daily_cache"),
        sa.UniqueConstraint("news_uuid", "date", name="uq_news_daily_cache_uuid_date"),
    )
    op.create_index(
        "ix_news_daily_cache_date_priority",
        "news_daily_cache",
        ["date", "priority"],
    )


def downgrade() -> None:
    op.drop_index("ix_news_daily_cache_date_priority", table_name="news_daily_cache")
    op.drop_table("news_daily_cache")
    op.drop_index("ix_news_similar_news_uuid", table_name="news_similar")
    op.drop_table("news_similar")
    op.drop_index("ix_news_entity_highlights_entity_id", table_name="news_entity_highlights")
    op.drop_table("news_entity_highlights")
    op.drop_index("ix_news_entities_news_uuid", table_name="news_entities")
    op.drop_table("news_entities")
    op.drop_table("news_categories")
    op.drop_index("ix_news_articles_published_at", table_name="news_articles")
    op.drop_table("news_articles")
    op.drop_index("ix_commodity_prices_date", table_name="commodity_prices")
    op.drop_table("commodity_prices")
    op.drop_index("ix_currency_rates_date", table_name="currency_rates")
    op.drop_table("currency_rates")
