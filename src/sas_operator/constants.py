"""Constants for the SAS Operator."""

# API Group
API_GROUP = "sas.example.com"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_SAS_GENERATOR = "SasGenerator"
PLURAL_SAS_GENERATOR = "sasgenerators"
SINGULAR_SAS_GENERATOR = "sasgenerator"

# Labels
LABEL_MANAGED_BY = f"{API_GROUP}/managed-by"
LABEL_STORAGE_ACCOUNT = f"{API_GROUP}/storage-account"
LABEL_CONTAINER = f"{API_GROUP}/container"

# Annotations
ANNOTATION_GENERATED = f"{API_GROUP}/generated"
ANNOTATION_EXPIRES = f"{API_GROUP}/expires"

# Field Manager
FIELD_MANAGER = "sas-operator"
CONTROLLER_NAME = "sas-operator"

# Secret
SECRET_NAME_PREFIX = "volsync"
SECRET_KEY_TOKEN = "sas_token"
SECRET_KEY_ACCOUNT = "account"
SECRET_KEY_CONTAINER = "container"

# Defaults (hours)
DEFAULT_SAS_RENEWAL_HOURS = 24
DEFAULT_SAS_TTL_HOURS = 48

# Requeue directives (seconds)
REQUEUE_AFTER_SUCCESS = 15
REQUEUE_AFTER_ERROR = 300

# Issuance
CLOCK_SKEW_SECONDS = 5
RETRY_INITIAL_DELAY_SECONDS = 0.5
RETRY_MULTIPLIER = 2.0
RETRY_MAX_DELAY_SECONDS = 30.0
RETRY_MAX_ATTEMPTS = 5

# Event Reasons
EVENT_REASON_TOKEN_ISSUED = "TokenIssued"
EVENT_REASON_SECRET_CREATED = "SecretCreated"
EVENT_REASON_SECRET_UPDATED = "SecretUpdated"
