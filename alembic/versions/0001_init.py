"""init
Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "estados",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("nome", sa.String(length=120), nullable=False),
        sa.Column("sigla", sa.String(length=2), nullable=False, unique=True),
        sa.Column("ativo", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("padrao", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_estados_nome", "estados", ["nome"])

    op.create_table(
        "cidades",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("nome", sa.String(length=120), nullable=False),
        sa.Column("estado_id", sa.Integer(), sa.ForeignKey("estados.id"), nullable=False),
        sa.Column("codigo_ibge", sa.String(length=7), nullable=True),
        sa.Column("ativo", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_cidades_nome", "cidades", ["nome"])
    op.create_index("ix_cidades_estado_id", "cidades", ["estado_id"])

def downgrade():
    op.drop_index("ix_cidades_estado_id", table_name="cidades")
    op.drop_index("ix_cidades_nome", table_name="cidades")
    op.drop_table("cidades")
    op.drop_index("ix_estados_nome", table_name="estados")
    op.drop_table("estados")
