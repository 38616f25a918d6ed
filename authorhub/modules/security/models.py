# Supabase tables: security_logs, security_settings
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
security_logs (append-only audit trail):
- id: uuid (primary key)
- event_type: text (not null) - e.g. login_failed, security_alert_triggered, security_scan_completed
- severity: text (not null) - values: low, medium, high, critical
- description: text (nullable)
- ip_address: text (nullable)
- user_agent: text (nullable)
- user_id: uuid (nullable)
- metadata: jsonb (default: {})
- resolved: boolean (default: false)
- resolved_at: timestamp (nullable)
- created_at: timestamp (default: now())

security_settings (single row):
- id: uuid (primary key)
- ssl_enforcement, https_redirect, hsts_enabled: boolean
- password_min_length: integer
- password_require_uppercase, password_require_lowercase,
  password_require_numbers, password_require_symbols: boolean
- two_factor_enabled: boolean
- session_timeout, max_login_attempts, lockout_duration: integer
- firewall_enabled, malware_scanning, auto_updates, ddos_protection,
  log_monitoring, data_encryption: boolean
- security_alerts: boolean
- alert_email: text (nullable)
- alert_sms: text (nullable)
- updated_at: timestamp (nullable)
"""
