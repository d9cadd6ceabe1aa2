"""create_exam_attempt_tables

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-18 10:12:04.318215

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('exams',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('subject', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('total_marks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_exams_status', 'exams', ['status'])

    op.create_table('questions',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('exam_id', sa.String(64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('marks', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('options_json', sa.Text(), nullable=True),
        sa.Column('correct_answer_json', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ondelete='CASCADE')
    )
    op.create_index('ix_questions_exam_id', 'questions', ['exam_id'])

    op.create_table('attempts',
        sa.Column('id', sa.String(64), nullable=False),
        sa.Column('student_id', sa.String(64), nullable=False),
        sa.Column('exam_id', sa.String(64), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('graded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_saved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('time_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('total_marks', sa.Integer(), nullable=True),
        sa.Column('percentage', sa.Integer(), nullable=True),
        sa.Column('auto_graded_score', sa.Integer(), nullable=True),
        sa.Column('auto_graded_percentage', sa.Integer(), nullable=True),
        sa.Column('manually_graded_score', sa.Integer(), nullable=True),
        sa.Column('pending_manual_marks', sa.Integer(), nullable=True),
        sa.Column('grading_status', sa.String(20), nullable=True),
        sa.Column('grade', sa.String(4), nullable=True),
        sa.Column('instructor_feedback', sa.Text(), nullable=True),
        sa.Column('report_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('report_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(512), nullable=True),
        sa.Column('browser_fingerprint', sa.String(255), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['exam_id'], ['exams.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('student_id', 'exam_id', name='uq_attempt_student_exam')
    )
    op.create_index('ix_attempts_student_id', 'attempts', ['student_id'])
    op.create_index('ix_attempts_exam_id', 'attempts', ['exam_id'])
    op.create_index('ix_attempts_status', 'attempts', ['status'])
    op.create_index('ix_attempts_grading_status', 'attempts', ['grading_status'])

    op.create_table('attempt_answers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('attempt_id', sa.String(64), nullable=False),
        sa.Column('question_id', sa.String(64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('answer_json', sa.Text(), nullable=False, server_default='null'),
        sa.Column('time_spent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('answered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revision', sa.Integer(), nullable=False),
        sa.Column('question_type', sa.String(20), nullable=True),
        sa.Column('correct_answer_json', sa.Text(), nullable=True),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('max_score', sa.Integer(), nullable=True),
        sa.Column('grading_status', sa.String(32), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['attempt_id'], ['attempts.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('attempt_id', 'question_id', name='uq_attempt_answer_question')
    )
    op.create_index('ix_attempt_answers_id', 'attempt_answers', ['id'])
    op.create_index('ix_attempt_answers_attempt_id', 'attempt_answers', ['attempt_id'])

    op.create_table('attempt_violations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('attempt_id', sa.String(64), nullable=False),
        sa.Column('type', sa.String(64), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('severity', sa.String(10), nullable=False, server_default='medium'),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['attempt_id'], ['attempts.id'], ondelete='CASCADE')
    )
    op.create_index('ix_attempt_violations_id', 'attempt_violations', ['id'])
    op.create_index('ix_attempt_violations_attempt_id', 'attempt_violations', ['attempt_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_attempt_violations_attempt_id', table_name='attempt_violations')
    op.drop_index('ix_attempt_violations_id', table_name='attempt_violations')
    op.drop_table('attempt_violations')
    op.drop_index('ix_attempt_answers_attempt_id', table_name='attempt_answers')
    op.drop_index('ix_attempt_answers_id', table_name='attempt_answers')
    op.drop_table('attempt_answers')
    op.drop_index('ix_attempts_grading_status', table_name='attempts')
    op.drop_index('ix_attempts_status', table_name='attempts')
    op.drop_index('ix_attempts_exam_id', table_name='attempts')
    op.drop_index('ix_attempts_student_id', table_name='attempts')
    op.drop_table('attempts')
    op.drop_index('ix_questions_exam_id', table_name='questions')
    op.drop_table('questions')
    op.drop_index('ix_exams_status', table_name='exams')
    op.drop_table('exams')
