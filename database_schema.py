"""
SQL schema for the studio tables.
Run these queries in your Supabase SQL editor.
"""

CREATE_PROFILES_TABLE = """
-- Profiles table, one row per Supabase Auth user
CREATE TABLE IF NOT EXISTS profiles (
    id UUID PRIMARY KEY REFERENCES auth.users(id) ON DELETE CASCADE,
    display_name VARCHAR(255),
    email VARCHAR(255),
    avatar_url TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

-- Enable Row Level Security
ALTER TABLE profiles ENABLE ROW LEVEL SECURITY;

-- Policy: Users can read their own profile
CREATE POLICY profiles_select_own ON profiles
    FOR SELECT
    USING (auth.uid()::text = id::text);

-- Policy: Service role can do everything (for API)
CREATE POLICY profiles_service_role_all ON profiles
    FOR ALL
    USING (auth.role() = 'service_role');
"""

CREATE_PROJECTS_TABLE = """
-- Projects table, generation results keyed by user and style number
CREATE TABLE IF NOT EXISTS projects (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
    style_no VARCHAR(100) NOT NULL,
    meta JSONB,
    result JSONB NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW(),
    CONSTRAINT projects_user_style_unique UNIQUE (user_id, style_no)
);

-- Create indexes for faster lookups
CREATE INDEX IF NOT EXISTS idx_projects_user_id ON projects(user_id);
CREATE INDEX IF NOT EXISTS idx_projects_created_at ON projects(created_at);

-- Enable Row Level Security
ALTER TABLE projects ENABLE ROW LEVEL SECURITY;

-- Policy: Users can read their own projects
CREATE POLICY projects_select_own ON projects
    FOR SELECT
    USING (auth.uid()::text = user_id::text);

-- Policy: Service role can do everything
CREATE POLICY projects_service_role_all ON projects
    FOR ALL
    USING (auth.role() = 'service_role');
"""

CREATE_UPDATED_AT_TRIGGER = """
-- Function to update updated_at timestamp
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = NOW();
    RETURN NEW;
END;
$$ language 'plpgsql';

DROP TRIGGER IF EXISTS update_profiles_updated_at ON profiles;
CREATE TRIGGER update_profiles_updated_at
    BEFORE UPDATE ON profiles
    FOR EACH ROW
    EXECUTE FUNCTION update_updated_at_column();

DROP TRIGGER IF EXISTS update_projects_updated_at ON projects;
CREATE TRIGGER update_projects_updated_at
    BEFORE UPDATE ON projects
    FOR EACH ROW
    EXECUTE FUNCTION update_updated_at_column();
"""

# Combined setup script
FULL_SCHEMA_SETUP = f"""
-- =====================================================
-- Drapicorn Studio Schema Setup
-- =====================================================
-- Run this in your Supabase SQL Editor
-- =====================================================

{CREATE_PROFILES_TABLE}

{CREATE_PROJECTS_TABLE}

{CREATE_UPDATED_AT_TRIGGER}

-- =====================================================
-- Setup Complete!
-- =====================================================
"""

if __name__ == "__main__":
    print(FULL_SCHEMA_SETUP)
