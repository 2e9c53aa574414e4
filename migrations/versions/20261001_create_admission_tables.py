"""create users, profiles and otp tables"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "admission_20261001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=120), nullable=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="renter"),
        sa.Column("account_status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("must_change_password", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("password_auto_generated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("referral_code", sa.String(length=16), nullable=True, unique=True),
        sa.Column("total_referrals", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "agent_profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("license_number", sa.String(length=64), nullable=False, unique=True),
        sa.Column("brokerage_name", sa.String(length=160), nullable=True),
        sa.Column("title", sa.String(length=120), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("activated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "renter_profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("registration_type", sa.String(length=32), nullable=False, server_default="normal"),
        sa.Column("referred_by_agent_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("referred_by_admin_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("questionnaire", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_renter_profiles_referred_by_agent_id", "renter_profiles", ["referred_by_agent_id"])
    op.create_index("ix_renter_profiles_referred_by_admin_id", "renter_profiles", ["referred_by_admin_id"])

    op.create_table(
        "otp_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("purpose", sa.String(length=32), nullable=False),
        sa.Column("code", sa.String(length=12), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("invalidated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_attempt_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_otp_records_user_id", "otp_records", ["user_id"])
    op.create_index("ix_otp_records_email", "otp_records", ["email"])
    op.create_index("ix_otp_records_expires_at", "otp_records", ["expires_at"])
    op.create_index(
        "ix_otp_records_user_purpose_created",
        "otp_records",
        ["user_id", "purpose", "created_at"],
    )


def downgrade():
    op.drop_index("ix_otp_records_user_purpose_created", table_name="otp_records")
    op.drop_index("ix_otp_records_expires_at", table_name="otp_records")
    op.drop_index("ix_otp_records_email", table_name="otp_records")
    op.drop_index("ix_otp_records_user_id", table_name="otp_records")
    op.drop_table("otp_records")

    op.drop_index("ix_renter_profiles_referred_by_admin_id", table_name="renter_profiles")
    op.drop_index("ix_renter_profiles_referred_by_agent_id", table_name="renter_profiles")
    op.drop_table("renter_profiles")

    op.drop_table("agent_profiles")
    op.drop_table("users")
