"""
Configuration management for Helpdesk.

- **app_configuration.py**: YAML configuration loader guarded by fcntl file
  locks. Exposes per-guild channel ids (forum, ask-here, active-questions and
  audit log channels), embed colours, message texts, the pending selection TTL
  and the thread auto-archive duration. Falls back to defaults on a missing or
  malformed file.
"""
