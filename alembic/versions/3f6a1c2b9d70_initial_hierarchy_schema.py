"""Initial hierarchy schema: groups, organizations, grants, agents and interview guides

Revision ID: 3f6a1c2b9d70
Revises:
Create Date: 2026-10-18 09:12:40.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '3f6a1c2b9d70'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

VISIBILITY_CHECK = "visibility_scope IN ('organization_only', 'organization_and_descendants', 'descendants_only')"


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def _shareable_columns():
    return [
        sa.Column('group_id', UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=True),
        sa.Column('visibility_scope', sa.String(50), nullable=False, server_default='organization_only'),
        sa.Column('created_by', sa.String(255), nullable=True),
        sa.Column('updated_by', sa.String(255), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('deleted_by', sa.String(255), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.Column('cloned_from_id', UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
    ]


def upgrade() -> None:
    # Create groups table
    op.create_table(
        'groups',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('api_key', sa.String(100), nullable=False, unique=True),
        sa.Column('root_organization_id', UUID(as_uuid=True), nullable=True),
        sa.Column('structure_version', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_groups_api_key', 'groups', ['api_key'])

    # Create organizations table
    op.create_table(
        'organizations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('group_id', UUID(as_uuid=True), nullable=False),
        sa.Column('parent_organization_id', UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state', sa.String(100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_organization_id'], ['organizations.id']),
    )
    op.create_index('ix_organizations_group_id', 'organizations', ['group_id'])
    op.create_index('ix_organizations_parent_organization_id', 'organizations', ['parent_organization_id'])

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('auth_subject', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('is_superadmin', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
    )
    op.create_index('ix_users_auth_subject', 'users', ['auth_subject'])
    op.create_index('ix_users_email', 'users', ['email'])

    # Create group_memberships table
    op.create_table(
        'group_memberships',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('group_id', UUID(as_uuid=True), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['group_id'], ['groups.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'group_id', name='uq_group_membership_user_group'),
    )
    op.create_index('ix_group_memberships_user_id', 'group_memberships', ['user_id'])
    op.create_index('ix_group_memberships_group_id', 'group_memberships', ['group_id'])

    # Create org_access_grants table
    op.create_table(
        'org_access_grants',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('organization_id', UUID(as_uuid=True), nullable=False),
        sa.Column('include_children', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'organization_id', name='uq_org_access_grant_user_org'),
    )
    op.create_index('ix_org_access_grants_user_id', 'org_access_grants', ['user_id'])
    op.create_index('ix_org_access_grants_organization_id', 'org_access_grants', ['organization_id'])

    # Create agents table
    op.create_table(
        'agents',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('profile_image_url', sa.Text(), nullable=True),
        sa.Column('system_prompt', sa.Text(), nullable=True),
        sa.Column('interview_guidelines', sa.Text(), nullable=True),
        sa.Column('voice_provider', sa.String(50), nullable=True),
        sa.Column('voice_type', sa.String(50), nullable=True),
        sa.Column('voice_name', sa.String(255), nullable=True),
        sa.Column('voice_id', sa.String(255), nullable=True),
        sa.Column('voice_stability', sa.Float(), nullable=True),
        sa.Column('voice_similarity_boost', sa.Float(), nullable=True),
        *_shareable_columns(),
        *_timestamps(),
        sa.CheckConstraint(VISIBILITY_CHECK, name='check_agent_visibility_scope'),
    )
    op.create_index('ix_agents_group_id', 'agents', ['group_id'])
    op.create_index('ix_agents_organization_id', 'agents', ['organization_id'])
    op.create_index('ix_agents_is_deleted', 'agents', ['is_deleted'])

    # Create interview_guides table
    op.create_table(
        'interview_guides',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('opening_template', sa.Text(), nullable=True),
        sa.Column('closing_template', sa.Text(), nullable=True),
        sa.Column('scoring_rubric', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_shareable_columns(),
        *_timestamps(),
        sa.CheckConstraint(VISIBILITY_CHECK, name='check_guide_visibility_scope'),
    )
    op.create_index('ix_interview_guides_group_id', 'interview_guides', ['group_id'])
    op.create_index('ix_interview_guides_organization_id', 'interview_guides', ['organization_id'])
    op.create_index('ix_interview_guides_is_deleted', 'interview_guides', ['is_deleted'])

    # Create interview_guide_questions table
    op.create_table(
        'interview_guide_questions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('interview_guide_id', UUID(as_uuid=True), nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('scoring_weight', sa.Float(), nullable=False, server_default='1.0'),
        sa.Column('scoring_guidance', sa.Text(), nullable=True),
        sa.Column('follow_ups_enabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('max_follow_ups', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['interview_guide_id'], ['interview_guides.id'], ondelete='CASCADE'),
        sa.CheckConstraint('scoring_weight >= 0', name='check_question_scoring_weight'),
        sa.CheckConstraint('max_follow_ups >= 0', name='check_question_max_follow_ups'),
    )
    op.create_index(
        'ix_interview_guide_questions_interview_guide_id', 'interview_guide_questions', ['interview_guide_id']
    )


def downgrade() -> None:
    op.drop_table('interview_guide_questions')
    op.drop_table('interview_guides')
    op.drop_table('agents')
    op.drop_table('org_access_grants')
    op.drop_table('group_memberships')
    op.drop_table('users')
    op.drop_table('organizations')
    op.drop_table('groups')
