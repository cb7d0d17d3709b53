"""Peewee tables of the remote store server."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import peewee
from playhouse.shortcuts import model_to_dict
from playhouse.sqlite_ext import JSONField, SqliteExtDatabase

from studysync.core.time_utils import utc_now

database_proxy: peewee.Database = peewee.DatabaseProxy()


class BaseModel(peewee.Model):
    class Meta:
        database = database_proxy
        legacy_table_names = False


class Document(BaseModel):
    id = peewee.AutoField()
    file_name = peewee.CharField(max_length=255)
    document_text = peewee.TextField()
    analysis = JSONField()
    content_hash = peewee.CharField(max_length=64, null=True, index=True)
    created_at = peewee.DateTimeField(default=utc_now)

    class Meta:
        table_name = "documents"


class Interview(BaseModel):
    id = peewee.AutoField()
    cv_content = peewee.TextField()
    cv_file_name = peewee.CharField(max_length=255, null=True)
    target_position = peewee.CharField(max_length=255)
    interview_type = peewee.CharField(max_length=50)
    custom_prompt = peewee.TextField(null=True)
    questions = JSONField()
    answers = JSONField()
    overall_score = peewee.FloatField(null=True)
    feedback = JSONField(null=True)
    created_at = peewee.DateTimeField(default=utc_now)
    completed_at = peewee.TextField(null=True)
    status = peewee.CharField(max_length=50)

    class Meta:
        table_name = "interviews"


class Question(BaseModel):
    id = peewee.AutoField()
    type = peewee.CharField(max_length=50)
    question = peewee.TextField()
    options = JSONField(null=True)
    correct_answer_index = peewee.IntegerField(null=True)
    explanation = peewee.TextField(null=True)
    key_topic = peewee.CharField(max_length=255, null=True)
    created_at = peewee.DateTimeField(default=utc_now)

    class Meta:
        table_name = "questions"


class QuestionBank(BaseModel):
    id = peewee.AutoField()
    name = peewee.CharField(max_length=255)
    description = peewee.TextField(null=True)
    subject = peewee.CharField(max_length=255, null=True)
    tags = JSONField(null=True)
    questions = JSONField()
    is_public = peewee.BooleanField(default=False)
    usage_count = peewee.IntegerField(default=0)
    created_at = peewee.DateTimeField(default=utc_now)
    updated_at = peewee.DateTimeField(null=True)

    class Meta:
        table_name = "question_banks"


ALL_MODELS = (Document, Interview, Question, QuestionBank)


def open_database(path: str) -> peewee.SqliteDatabase:
    """Open the server database, bind the models to it and create missing tables."""
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    database = SqliteExtDatabase(
        path,
        pragmas={"journal_mode": "wal", "synchronous": "normal"},
        check_same_thread=False,
    )
    database_proxy.initialize(database)
    with database.connection_context():
        database.create_tables(ALL_MODELS, safe=True)
    return database


def row_to_dict(record: peewee.Model) -> dict[str, Any]:
    data = model_to_dict(record)
    for key, value in data.items():
        if hasattr(value, "isoformat"):
            data[key] = value.isoformat()
    return data
