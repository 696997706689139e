"""create_tennismate_schema

Revision ID: a7c41e9d2b30
Revises:
Create Date: 2026-10-19 10:12:41.508112

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a7c41e9d2b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'profiles',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('skill_level', sa.String(length=20), nullable=False, server_default='Beginner'),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('availability', sa.JSON(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.CheckConstraint(
            "skill_level IN ('Beginner', 'Intermediate', 'Advanced', 'Pro')",
            name='check_skill_level'
        )
    )
    op.create_index('ix_profiles_created_at', 'profiles', ['created_at'])

    op.create_table(
        'swipes',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('target_user_id', sa.UUID(), nullable=False),
        sa.Column('action', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['target_user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'target_user_id', name='unique_user_target_swipe'),
        sa.CheckConstraint("action IN ('like', 'pass')", name='check_swipe_action')
    )
    op.create_index('ix_swipes_user_id', 'swipes', ['user_id'])
    op.create_index('ix_swipes_target_user_id', 'swipes', ['target_user_id'])

    op.create_table(
        'matches',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user1_id', sa.UUID(), nullable=False),
        sa.Column('user2_id', sa.UUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user1_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user2_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user1_id', 'user2_id', name='unique_match_pair')
    )
    op.create_index('ix_matches_user1_id', 'matches', ['user1_id'])
    op.create_index('ix_matches_user2_id', 'matches', ['user2_id'])

    op.create_table(
        'messages',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('match_id', sa.UUID(), nullable=False),
        sa.Column('sender_id', sa.UUID(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['match_id'], ['matches.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['profiles.id'], ondelete='CASCADE')
    )
    op.create_index('ix_messages_match_id_created_at', 'messages', ['match_id', 'created_at'])
    op.create_index('ix_messages_unread', 'messages', ['match_id', 'read'])

    op.create_table(
        'match_proposals',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('match_id', sa.UUID(), nullable=False),
        sa.Column('sender_id', sa.UUID(), nullable=False),
        sa.Column('receiver_id', sa.UUID(), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('court_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['match_id'], ['matches.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['receiver_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'cancelled')",
            name='check_proposal_status'
        )
    )
    op.create_index('ix_match_proposals_match_id_status', 'match_proposals', ['match_id', 'status'])
    op.create_index('ix_match_proposals_receiver_id', 'match_proposals', ['receiver_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('sender_id', sa.UUID(), nullable=True),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('resource_id', sa.UUID(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['profiles.id'], ondelete='SET NULL'),
        sa.CheckConstraint("type IN ('like', 'comment', 'match', 'system')", name='check_notification_type')
    )
    op.create_index('ix_notifications_user_id_read', 'notifications', ['user_id', 'read'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_notifications_user_id_read', 'notifications')
    op.drop_table('notifications')

    op.drop_index('ix_match_proposals_receiver_id', 'match_proposals')
    op.drop_index('ix_match_proposals_match_id_status', 'match_proposals')
    op.drop_table('match_proposals')

    op.drop_index('ix_messages_unread', 'messages')
    op.drop_index('ix_messages_match_id_created_at', 'messages')
    op.drop_table('messages')

    op.drop_index('ix_matches_user2_id', 'matches')
    op.drop_index('ix_matches_user1_id', 'matches')
    op.drop_table('matches')

    op.drop_index('ix_swipes_target_user_id', 'swipes')
    op.drop_index('ix_swipes_user_id', 'swipes')
    op.drop_table('swipes')

    op.drop_index('ix_profiles_created_at', 'profiles')
    op.drop_table('profiles')
