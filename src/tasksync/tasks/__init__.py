"""
Task sync subsystem.

Components:
- task_models.py: data structures (TaskRecord, Outcome, BatchOperation, ...)
- task_fields.py: default filling and the update allow-list
- task_store.py: in-memory store with optimistic concurrency
- task_sync.py: delta sync (list since cursor, watermark, stats)
- task_batch.py: ordered batch application with per-operation outcomes
- snapshot.py: JSON write-through mirror + reload
- task_api.py: small helpers used by the transport shell
"""
