"""
ORM model package. Import all models here so Alembic autogenerate
can discover every table through the shared Base metadata.
"""
from tracker.models.activity_log import ActivityLog  # noqa: F401
from tracker.models.entity_snapshot import EntitySnapshot  # noqa: F401
