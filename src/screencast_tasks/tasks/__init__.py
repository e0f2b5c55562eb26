"""
Task subsystem.

Components:
- task_models.py: the task variants, their wire format and dedupe keys
- task_store.py: SQLite-backed `tasks` table (upsert / due / delete)
- task_executor.py: runs one task against the external services
- task_scheduler.py: polling loop that drains due tasks one by one
- task_api.py: small high-level scheduling helpers used by the rest of the app
"""
