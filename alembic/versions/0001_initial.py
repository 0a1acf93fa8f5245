"""Initial migration: profiles, contacts, row-level security and signup trigger

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    # 1. Profiles, one per auth.users row
    op.create_table('profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), server_default='Member', nullable=False),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('notifications', postgresql.JSONB(astext_type=sa.Text()),
                  server_default=sa.text('\'{"weeklyReports": true, "newLeadAlerts": true}\'::jsonb'), nullable=True),
        sa.Column('job_title', sa.String(length=255), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint("role IN ('Admin', 'Manager', 'Member')", name='ck_profiles_role'),
        sa.ForeignKeyConstraint(['id'], ['auth.users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_profiles_name', 'profiles', ['name'], unique=False)

    # 2. Contacts, owned by one user
    op.create_table('contacts',
        sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), server_default='Lead', nullable=False),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('industry', sa.String(length=255), nullable=True),
        sa.Column('company_size', sa.String(length=50), nullable=True),
        sa.Column('company_address', sa.Text(), nullable=True),
        sa.Column('website', sa.String(length=500), nullable=True),
        sa.Column('employees_count', sa.Integer(), nullable=True),
        sa.Column('annual_revenue', sa.Numeric(), nullable=True),
        sa.Column('total_funding', sa.Numeric(), nullable=True),
        sa.Column('latest_funding_amount', sa.Numeric(), nullable=True),
        sa.Column('seniority', sa.String(length=100), nullable=True),
        sa.Column('departments', sa.Text(), nullable=True),
        sa.Column('keywords', sa.Text(), nullable=True),
        sa.Column('technologies', sa.Text(), nullable=True),
        sa.Column('email_status', sa.String(length=50), nullable=True),
        sa.Column('stage', sa.String(length=100), nullable=True),
        sa.Column('city', sa.String(length=255), nullable=True),
        sa.Column('state', sa.String(length=255), nullable=True),
        sa.Column('country', sa.String(length=255), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('company_city', sa.String(length=255), nullable=True),
        sa.Column('company_state', sa.String(length=255), nullable=True),
        sa.Column('company_country', sa.String(length=255), nullable=True),
        sa.Column('company_phone', sa.String(length=50), nullable=True),
        sa.Column('person_linkedin_url', sa.String(length=500), nullable=True),
        sa.Column('company_linkedin_url', sa.String(length=500), nullable=True),
        sa.Column('facebook_url', sa.String(length=500), nullable=True),
        sa.Column('twitter_url', sa.String(length=500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('tags', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint("status IN ('Lead', 'Customer', 'Archived')", name='ck_contacts_status'),
        sa.ForeignKeyConstraint(['user_id'], ['auth.users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contact_user_name', 'contacts', ['user_id', 'name'], unique=False)
    op.create_index('ix_contact_user_status', 'contacts', ['user_id', 'status'], unique=False)

    # 3. Row-level security: contacts are private to their owner
    op.execute("ALTER TABLE contacts ENABLE ROW LEVEL SECURITY")
    op.execute("""
        CREATE POLICY contacts_owner_all ON contacts
        FOR ALL TO authenticated
        USING (user_id = auth.uid())
        WITH CHECK (user_id = auth.uid())
    """)

    # Profiles: readable by any signed-in user, writable by the owner or Admin/Manager
    op.execute("ALTER TABLE profiles ENABLE ROW LEVEL SECURITY")
    op.execute("""
        CREATE POLICY profiles_read ON profiles
        FOR SELECT TO authenticated
        USING (true)
    """)
    op.execute("""
        CREATE OR REPLACE FUNCTION public.can_manage_users(uid uuid)
        RETURNS boolean
        LANGUAGE sql STABLE SECURITY DEFINER SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM public.profiles
                WHERE id = uid AND role IN ('Admin', 'Manager')
            )
        $$
    """)
    op.execute("""
        CREATE POLICY profiles_update ON profiles
        FOR UPDATE TO authenticated
        USING (id = auth.uid() OR public.can_manage_users(auth.uid()))
    """)

    # 4. Materialize a profile for every new account
    op.execute("""
        CREATE OR REPLACE FUNCTION public.handle_new_user()
        RETURNS trigger
        LANGUAGE plpgsql SECURITY DEFINER SET search_path = public
        AS $$
        BEGIN
            INSERT INTO public.profiles (id, email, name, avatar_url)
            VALUES (
                NEW.id,
                NEW.email,
                COALESCE(NEW.raw_user_meta_data ->> 'name', split_part(NEW.email, '@', 1)),
                'https://picsum.photos/seed/' || NEW.id || '/40/40'
            );
            RETURN NEW;
        END;
        $$
    """)
    op.execute("""
        CREATE TRIGGER on_auth_user_created
        AFTER INSERT ON auth.users
        FOR EACH ROW EXECUTE FUNCTION public.handle_new_user()
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS on_auth_user_created ON auth.users")
    op.execute("DROP FUNCTION IF EXISTS public.handle_new_user()")

    op.execute("DROP POLICY IF EXISTS profiles_update ON profiles")
    op.execute("DROP FUNCTION IF EXISTS public.can_manage_users(uuid)")
    op.execute("DROP POLICY IF EXISTS profiles_read ON profiles")
    op.execute("DROP POLICY IF EXISTS contacts_owner_all ON contacts")

    op.drop_index('ix_contact_user_status', table_name='contacts')
    op.drop_index('ix_contact_user_name', table_name='contacts')
    op.drop_table('contacts')

    op.drop_index('ix_profiles_name', table_name='profiles')
    op.drop_table('profiles')
