"""create profiles and assets

Revision ID: create_assets_001
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'create_assets_001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Display profiles, provisioned by the identity provider
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_profiles_id', 'profiles', ['id'])

    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),

        # Identity
        sa.Column('asset_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=False, server_default='other'),

        # State
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('value', sa.Numeric(12, 2), nullable=True),

        # Rendered QR image (data URI), overwritten on regeneration
        sa.Column('qr_code', sa.Text(), nullable=True),

        # People
        sa.Column('assignee_id', sa.String(length=100), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('created_by', sa.String(length=100), sa.ForeignKey('profiles.id'), nullable=True),

        sa.PrimaryKeyConstraint('id')
    )

    op.create_index('ix_assets_id', 'assets', ['id'])
    op.create_index('ix_assets_asset_id', 'assets', ['asset_id'], unique=True)
    op.create_index('ix_assets_category', 'assets', ['category'])
    op.create_index('ix_assets_status', 'assets', ['status'])


def downgrade():
    op.drop_index('ix_assets_status', table_name='assets')
    op.drop_index('ix_assets_category', table_name='assets')
    op.drop_index('ix_assets_asset_id', table_name='assets')
    op.drop_index('ix_assets_id', table_name='assets')
    op.drop_table('assets')

    op.drop_index('ix_profiles_id', table_name='profiles')
    op.drop_table('profiles')
