"""Initial dispute-resolution schema

Revision ID: 001
Revises: None
Create Date: 2026-10-19

Creates: businesses, profiles, api_keys, whitelisted_ips, transactions,
         disputes, evidence, comments, dispute_history
Enums: actorrole, transactionstatus, disputestatus, disputeresolution, disputeaction
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    # ── 1. Enum types ─────────────────────────────────────────────────────
    op.execute("CREATE TYPE actorrole AS ENUM ('admin', 'user', 'arbitrator');")
    op.execute("""
        CREATE TYPE transactionstatus AS ENUM (
            'pending', 'completed', 'failed', 'disputed'
        );
    """)
    op.execute("""
        CREATE TYPE disputestatus AS ENUM (
            'open', 'under_review', 'resolved', 'rejected', 'canceled'
        );
    """)
    op.execute("""
        CREATE TYPE disputeresolution AS ENUM (
            'in_favor_of_initiator', 'in_favor_of_respondent', 'partial'
        );
    """)
    op.execute("CREATE TYPE disputeaction AS ENUM ('accept', 'reject');")

    # ── 2. Tenancy ────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE businesses (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255) NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_businesses_name UNIQUE (name),
            CONSTRAINT uq_businesses_email UNIQUE (email)
        );
    """)

    op.execute("""
        CREATE TABLE profiles (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email VARCHAR(255) NOT NULL,
            business_id UUID NOT NULL REFERENCES businesses(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_profiles_business_email UNIQUE (business_id, email)
        );
    """)
    op.execute("CREATE INDEX ix_profiles_email ON profiles (email);")

    op.execute("""
        CREATE TABLE api_keys (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            key VARCHAR(255) NOT NULL,
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255) NOT NULL,
            role actorrole NOT NULL DEFAULT 'user',
            business_id UUID REFERENCES businesses(id) ON DELETE CASCADE,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_api_keys_key UNIQUE (key)
        );
    """)
    op.execute("CREATE INDEX ix_api_keys_business_id ON api_keys (business_id);")

    op.execute("""
        CREATE TABLE whitelisted_ips (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            api_key_id UUID NOT NULL REFERENCES api_keys(id) ON DELETE CASCADE,
            ip_address VARCHAR(45) NOT NULL,
            description VARCHAR(255),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_whitelisted_ips_key_ip UNIQUE (api_key_id, ip_address)
        );
    """)
    op.execute("CREATE INDEX ix_whitelisted_ips_api_key_id ON whitelisted_ips (api_key_id);")

    # ── 3. Transactions ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE transactions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            session_id VARCHAR(100) NOT NULL,
            amount NUMERIC(20, 2) NOT NULL,
            source_account_name VARCHAR(100) NOT NULL,
            source_bank VARCHAR(100) NOT NULL,
            beneficiary_account_name VARCHAR(100) NOT NULL,
            beneficiary_bank VARCHAR(100) NOT NULL,
            status transactionstatus NOT NULL DEFAULT 'pending',
            transaction_date TIMESTAMPTZ NOT NULL DEFAULT now(),
            channel_code VARCHAR(50),
            destination_node VARCHAR(100),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_transactions_session_id UNIQUE (session_id)
        );
    """)
    op.execute("CREATE INDEX ix_transactions_status ON transactions (status);")

    # ── 4. Disputes ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE disputes (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            business_id UUID REFERENCES businesses(id) ON DELETE CASCADE,
            transaction_id UUID REFERENCES transactions(id) ON DELETE SET NULL,

            -- Parties
            initiator_email VARCHAR(255) NOT NULL,
            counterparty_email VARCHAR(255) NOT NULL,
            initiator_profile_id UUID REFERENCES profiles(id) ON DELETE RESTRICT,
            counterparty_profile_id UUID REFERENCES profiles(id) ON DELETE RESTRICT,
            created_by UUID NOT NULL REFERENCES api_keys(id) ON DELETE CASCADE,
            arbitrator_id UUID REFERENCES api_keys(id) ON DELETE SET NULL,

            -- Classification
            reason VARCHAR(255) NOT NULL,
            description TEXT,
            amount NUMERIC(15, 2),

            -- Transaction snapshot
            session_id VARCHAR(255),
            source_account_name VARCHAR(255),
            source_bank VARCHAR(255),
            beneficiary_account_name VARCHAR(255),
            beneficiary_bank VARCHAR(255),

            -- Lifecycle
            status disputestatus NOT NULL DEFAULT 'open',
            resolution disputeresolution,
            resolution_notes TEXT,
            resolution_date TIMESTAMPTZ,
            action disputeaction,
            date_treated TIMESTAMPTZ,

            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),

            CONSTRAINT ck_disputes_resolution_iff_resolved CHECK (
                (status = 'resolved') = (resolution IS NOT NULL AND resolution_date IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX ix_disputes_business_id ON disputes (business_id);")
    op.execute(
        "CREATE INDEX ix_disputes_transaction_id ON disputes (transaction_id) "
        "WHERE transaction_id IS NOT NULL;"
    )
    op.execute("CREATE INDEX ix_disputes_status ON disputes (status);")
    op.execute("CREATE INDEX ix_disputes_arbitrator_id ON disputes (arbitrator_id);")
    op.execute("CREATE INDEX ix_disputes_initiator_profile_id ON disputes (initiator_profile_id);")
    op.execute(
        "CREATE INDEX ix_disputes_counterparty_profile_id ON disputes (counterparty_profile_id);"
    )

    # ── 5. Evidence, comments, history ────────────────────────────────────
    op.execute("""
        CREATE TABLE evidence (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            dispute_id UUID NOT NULL REFERENCES disputes(id) ON DELETE CASCADE,
            submitted_by UUID NOT NULL REFERENCES api_keys(id) ON DELETE CASCADE,
            evidence_type VARCHAR(50) NOT NULL,
            description TEXT,
            file_path VARCHAR(255),
            file_name VARCHAR(255),
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_evidence_dispute_id ON evidence (dispute_id);")

    op.execute("""
        CREATE TABLE comments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            dispute_id UUID NOT NULL REFERENCES disputes(id) ON DELETE CASCADE,
            created_by UUID NOT NULL REFERENCES api_keys(id) ON DELETE CASCADE,
            comment TEXT NOT NULL,
            is_private BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_comments_dispute_id ON comments (dispute_id);")

    op.execute("""
        CREATE TABLE dispute_history (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            dispute_id UUID NOT NULL REFERENCES disputes(id) ON DELETE CASCADE,
            created_by UUID NOT NULL REFERENCES api_keys(id) ON DELETE CASCADE,
            action VARCHAR(100) NOT NULL,
            details TEXT,
            action_date TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_dispute_history_dispute_id ON dispute_history (dispute_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS dispute_history;")
    op.execute("DROP TABLE IF EXISTS comments;")
    op.execute("DROP TABLE IF EXISTS evidence;")
    op.execute("DROP TABLE IF EXISTS disputes;")
    op.execute("DROP TABLE IF EXISTS transactions;")
    op.execute("DROP TABLE IF EXISTS whitelisted_ips;")
    op.execute("DROP TABLE IF EXISTS api_keys;")
    op.execute("DROP TABLE IF EXISTS profiles;")
    op.execute("DROP TABLE IF EXISTS businesses;")
    op.execute("DROP TYPE IF EXISTS disputeaction;")
    op.execute("DROP TYPE IF EXISTS disputeresolution;")
    op.execute("DROP TYPE IF EXISTS disputestatus;")
    op.execute("DROP TYPE IF EXISTS transactionstatus;")
    op.execute("DROP TYPE IF EXISTS actorrole;")
