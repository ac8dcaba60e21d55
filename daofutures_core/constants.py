# daofutures_core/constants.py

SCHEMA_VERSION = "1.0"

# Ciphertext envelope of the tagged market codec
TAGGED_PREFIX = "FHE-"
TAGGED_SUFFIX = "-ZAMA"
SEALED_PREFIX = "SIV-"

# Storage keys (contract key-value layout)
KEYS_INDEX = "contract_keys"
RECORD_KEY_PREFIX = "contract_"
BATCH_CURRENT_KEY = "batch_current"
BATCH_KEY_PREFIX = "batch_"
REQUEST_KEY_PREFIX = "decryption_"
RESULT_KEY_PREFIX = "aggregate_"
COOLDOWN_KEY_PREFIX = "cooldown_"

# Standard record fields
FIELD_POWER = "power"
FIELD_PRICE = "price"
FIELD_VOLUME = "volume"

# Notification subjects
SUBJECT_REQUESTED = "aggregate.requested"
SUBJECT_COMPLETED = "aggregate.completed"
SUBJECT_REJECTED = "aggregate.rejected"

DEFAULT_COOLDOWN_SECONDS = 60
DEFAULT_REQUEST_TTL = 86400
DEFAULT_CONTEXT_ID = "daofutures-local"
CAS_MAX_RETRIES = 32
