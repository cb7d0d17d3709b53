"""Peewee ORM models for the local offline store."""

from __future__ import annotations

import peewee
from playhouse.sqlite_ext import JSONField

from studysync.core.time_utils import utc_now

# Placeholder; each LocalHistoryStore binds the models to its own database per operation.
database_proxy: peewee.Database = peewee.DatabaseProxy()


class BaseModel(peewee.Model):
    class Meta:
        database = database_proxy
        legacy_table_names = False


class HistoryRecord(BaseModel):
    """One document or interview from the user's local history."""

    id = peewee.AutoField()
    item_type = peewee.TextField()
    label = peewee.TextField()
    date = peewee.TextField(null=True)
    payload = JSONField()
    created_at = peewee.DateTimeField(default=utc_now)

    class Meta:
        table_name = "history_items"
        indexes = ((("label", "date"), False),)


class QuestionBankRecord(BaseModel):
    id = peewee.AutoField()
    name = peewee.TextField()
    payload = JSONField()
    created_at = peewee.DateTimeField(default=utc_now)

    class Meta:
        table_name = "question_banks"


ALL_MODELS = (HistoryRecord, QuestionBankRecord)
