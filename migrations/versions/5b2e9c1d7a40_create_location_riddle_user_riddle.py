"""create user, location, riddle and user_riddle tables

Revision ID: 5b2e9c1d7a40
Revises:
Create Date: 2025-12-14 16:04:03

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b2e9c1d7a40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.Column('role', sa.String(length=16), nullable=False, server_default='user'),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'location' not in existing_tables:
        op.create_table(
            'location',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('latitude', sa.Float(), nullable=False),
            sa.Column('longitude', sa.Float(), nullable=False),
            sa.Column('image_url', sa.String(length=512), nullable=False),
            sa.Column('short_description', sa.String(length=200), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )

    if 'riddle' not in existing_tables:
        op.create_table(
            'riddle',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('difficulty', sa.Integer(), nullable=False, server_default='2'),
            sa.Column('location_id', sa.Integer(), sa.ForeignKey('location.id'), nullable=False),
            sa.Column('time_limit_seconds', sa.Integer(), nullable=False, server_default='300'),
            sa.Column('max_distance_meters', sa.Integer(), nullable=False, server_default='1000'),
            sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index('ix_riddle_location_id', 'riddle', ['location_id'])

    if 'user_riddle' not in existing_tables:
        op.create_table(
            'user_riddle',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
            sa.Column('riddle_id', sa.Integer(), sa.ForeignKey('riddle.id'), nullable=False),
            sa.Column('assigned_at', sa.DateTime(), nullable=False),
            sa.Column('answered_at', sa.DateTime(), nullable=True),
            sa.Column('submitted_latitude', sa.Float(), nullable=True),
            sa.Column('submitted_longitude', sa.Float(), nullable=True),
            sa.Column('distance_meters', sa.Float(), nullable=True),
            sa.Column('time_seconds', sa.Integer(), nullable=True),
            sa.Column('points', sa.Integer(), nullable=True),
        )
        op.create_index('ix_user_riddle_user_id', 'user_riddle', ['user_id'])
        op.create_index('ix_user_riddle_riddle_id', 'user_riddle', ['riddle_id'])
        # One pending assignment per user
        op.create_index(
            'uq_user_riddle_pending',
            'user_riddle',
            ['user_id'],
            unique=True,
            sqlite_where=sa.text('answered_at IS NULL'),
            postgresql_where=sa.text('answered_at IS NULL'),
        )


def downgrade():
    op.drop_index('uq_user_riddle_pending', table_name='user_riddle')
    op.drop_index('ix_user_riddle_riddle_id', table_name='user_riddle')
    op.drop_index('ix_user_riddle_user_id', table_name='user_riddle')
    op.drop_table('user_riddle')
    op.drop_index('ix_riddle_location_id', table_name='riddle')
    op.drop_table('riddle')
    op.drop_table('location')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
