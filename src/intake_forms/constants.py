"""Constants shared across the intake SDK, store and server.

Several values can be overridden via environment variables so that
deployments can tune timing without code changes.
"""

import os

# Credentials expire this many days after issuance.  No refresh endpoint
# exists, so an expired session must log in again.
# Overridable via INTAKE_TOKEN_TTL_DAYS env var.
TOKEN_TTL_DAYS = int(os.getenv("INTAKE_TOKEN_TTL_DAYS", "7"))

# Blob key families.  One responses blob and one messages blob per client
# slug, plus a single global slug -> updated_at index for listing.
RESPONSES_KEY_PREFIX = "responses-"
MESSAGES_KEY_PREFIX = "messages-"
# Outside both prefixed families so no slug can address it
SCOPE_INDEX_KEY = "scope-index"

# Client-side autosave: quiescence window before a batched write fires,
# and how long a teardown flush may block.
DEFAULT_DEBOUNCE_SECONDS = float(os.getenv("INTAKE_DEBOUNCE_SECONDS", "1.0"))
DEFAULT_FLUSH_TIMEOUT_SECONDS = float(os.getenv("INTAKE_FLUSH_TIMEOUT_SECONDS", "2.0"))

# Case YAML files are named ``v<N>.yaml`` inside a per-slug directory.
CASE_FILE_GLOB = "v*.yaml"

# Display strings for yes/no answers in exported reports.
YES_LABEL = "Yes"
NO_LABEL = "No"
