"""StudySync: keep study material locally and push it to a shared remote store."""

__version__ = "0.1.0"
