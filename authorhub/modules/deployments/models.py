# Supabase table: aws_deployments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- deployment_name: text (not null)
- ec2_instance_id: text (nullable)
- ec2_public_ip: text (nullable)
- region: text (not null, default: 'us-east-1')
- status: text (not null, default: 'pending') - values: pending, deploying, running, failed, stopped
- deployment_type: text (nullable) - values: fresh, code-only
- deployment_log: text (nullable) - raw script output, appended on every refresh
- status_events: jsonb (default: []) - AUTHORHUB_EVENT records, see progress.py
- ssm_command_id: text (nullable)
- user_id: uuid (foreign key to auth.users.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- last_deployed_at: timestamp (nullable)

Supabase table: aws_settings
- id: uuid (primary key)
- aws_access_key_id: text (not null)
- aws_secret_access_key: text (not null)
- default_region: text (default: 'us-east-1')
- created_at: timestamp (default: now())
"""
