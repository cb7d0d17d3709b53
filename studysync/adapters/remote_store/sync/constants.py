"""Constants for local-to-remote synchronization."""

ITEM_TYPE_DOCUMENT = "document"
ITEM_TYPE_INTERVIEW = "interview"
ITEM_TYPE_QUESTION_BANK = "question_bank"

# Per-type attempt defaults
DOCUMENT_MAX_ATTEMPTS = 3
INTERVIEW_MAX_ATTEMPTS = 1
QUESTION_BANK_MAX_ATTEMPTS = 1

DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MAX_JITTER_SECONDS = 1.0

TRANSIENT_STATUS_CODES = frozenset({408, 429})
VALIDATION_STATUS_CODES = frozenset({400, 409, 413, 422})
