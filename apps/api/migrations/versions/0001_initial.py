"""initial schema: spaces, versioned characters/styles/scenes, images, usage events

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

# (head table, version table, fk column, kind-specific text columns)
_KINDS = (
    (
        "characters",
        "character_versions",
        "character_id",
        ("identity_summary", "physical_description", "wardrobe_description", "personality_mannerisms", "extra_notes"),
    ),
    (
        "styles",
        "style_versions",
        "style_id",
        ("art_style", "color_palette", "lighting", "camera", "render_technique"),
    ),
    (
        "scenes",
        "scene_versions",
        "scene_id",
        ("environment_description", "layout_description", "time_of_day", "mood"),
    ),
)


def upgrade() -> None:
    op.create_table(
        "spaces",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("owner_user_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.Text(), nullable=False),
    )
    op.create_index("ix_spaces_owner_user_id", "spaces", ["owner_user_id"])

    for table, version_table, fk, text_columns in _KINDS:
        op.create_table(
            table,
            sa.Column("id", sa.Text(), primary_key=True),
            sa.Column("space_id", sa.Text(), sa.ForeignKey("spaces.id"), nullable=False),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("created_at", sa.Text(), nullable=False),
            sa.Column("updated_at", sa.Text(), nullable=False),
        )
        op.create_index(f"ix_{table}_space_id", table, ["space_id"])

        op.create_table(
            version_table,
            sa.Column("id", sa.Text(), primary_key=True),
            sa.Column(fk, sa.Text(), sa.ForeignKey(f"{table}.id"), nullable=False),
            sa.Column("version_number", sa.Integer(), nullable=False),
            sa.Column("label", sa.Text(), nullable=True),
            *[sa.Column(c, sa.Text(), nullable=True) for c in text_columns],
            sa.Column("attributes_json", sa.Text(), nullable=False, server_default="{}"),
            sa.Column("base_prompt", sa.Text(), nullable=True),
            sa.Column("negative_prompt", sa.Text(), nullable=True),
            sa.Column("base_seed", sa.Integer(), nullable=True),
            sa.Column("cloned_from_version_id", sa.Text(), nullable=True),
            sa.Column("created_at", sa.Text(), nullable=False),
            sa.UniqueConstraint(fk, "version_number", name=f"uq_{version_table}_{fk}_version"),
        )
        op.create_index(f"ix_{version_table}_{fk}", version_table, [fk])

    op.create_table(
        "images",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("space_id", sa.Text(), sa.ForeignKey("spaces.id"), nullable=False),
        sa.Column("character_version_id", sa.Text(), sa.ForeignKey("character_versions.id"), nullable=False),
        sa.Column("style_version_id", sa.Text(), sa.ForeignKey("style_versions.id"), nullable=False),
        sa.Column("scene_version_id", sa.Text(), sa.ForeignKey("scene_versions.id"), nullable=True),
        sa.Column("seed", sa.Integer(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("negative_prompt", sa.Text(), nullable=True),
        sa.Column("model_name", sa.Text(), nullable=False),
        sa.Column("aspect_ratio", sa.Text(), nullable=True),
        sa.Column("resolution", sa.Text(), nullable=True),
        sa.Column("storage_key", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.Text(), nullable=True),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.Column("deleted_at", sa.Text(), nullable=True),
    )
    op.create_index("ix_images_space_id", "images", ["space_id"])
    op.create_index("ix_images_character_version_id", "images", ["character_version_id"])
    op.create_index("ix_images_style_version_id", "images", ["style_version_id"])
    op.create_index("ix_images_scene_version_id", "images", ["scene_version_id"])
    op.create_index("ix_images_deleted_at", "images", ["deleted_at"])

    op.create_table(
        "image_usage_events",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("space_id", sa.Text(), nullable=False),
        sa.Column("image_id", sa.Text(), nullable=True),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("model_name", sa.Text(), nullable=False),
        sa.Column("seed", sa.Integer(), nullable=True),
        sa.Column("storage_key", sa.Text(), nullable=True),
        sa.Column("created_at", sa.Text(), nullable=False),
    )
    op.create_index("ix_image_usage_events_user_id", "image_usage_events", ["user_id"])
    op.create_index("ix_image_usage_events_space_id", "image_usage_events", ["space_id"])
    op.create_index("ix_image_usage_events_image_id", "image_usage_events", ["image_id"])

    # audit log is append-only
    if op.get_bind().dialect.name == "sqlite":
        op.execute(
            """
            CREATE TRIGGER IF NOT EXISTS trg_image_usage_events_no_update
            BEFORE UPDATE ON image_usage_events
            BEGIN
              SELECT RAISE(ABORT, 'append-only: image_usage_events cannot be updated');
            END;
            """
        )


def downgrade() -> None:
    if op.get_bind().dialect.name == "sqlite":
        op.execute("DROP TRIGGER IF EXISTS trg_image_usage_events_no_update;")
    op.drop_index("ix_image_usage_events_image_id", table_name="image_usage_events")
    op.drop_index("ix_image_usage_events_space_id", table_name="image_usage_events")
    op.drop_index("ix_image_usage_events_user_id", table_name="image_usage_events")
    op.drop_table("image_usage_events")

    for ix in ("deleted_at", "scene_version_id", "style_version_id", "character_version_id", "space_id"):
        op.drop_index(f"ix_images_{ix}", table_name="images")
    op.drop_table("images")

    for table, version_table, fk, _ in reversed(_KINDS):
        op.drop_index(f"ix_{version_table}_{fk}", table_name=version_table)
        op.drop_table(version_table)
        op.drop_index(f"ix_{table}_space_id", table_name=table)
        op.drop_table(table)

    op.drop_index("ix_spaces_owner_user_id", table_name="spaces")
    op.drop_table("spaces")
