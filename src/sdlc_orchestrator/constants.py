"""Constants for the SDLC orchestrator.

Defaults for every tunable live here; ``sdlc_orchestrator.config`` layers a JSON
file and environment variables on top of them.
"""

from pathlib import Path

# =============================================================================
# Application Directory Structure
# =============================================================================
# Base directory for all orchestrator data (~/.sdlc-orchestrator)
SDLC_HOME_DIR = Path.home() / ".sdlc-orchestrator"

# Append-only status records, one JSON-lines file per session
STATUS_DIR = SDLC_HOME_DIR / "status"

# =============================================================================
# Collaborator API
# =============================================================================
API_BASE_URL = "http://localhost:8080"
HTTP_TIMEOUT_SECONDS = 30

# =============================================================================
# Run Limits
# =============================================================================
# Global wall-clock budget for one run, checked before each new attempt
RUN_TIMEOUT_SECONDS = 15 * 60

# 0 means no cap beyond the run timeout
MAX_ATTEMPTS = 0

# =============================================================================
# Deployment Status Polling
# =============================================================================
DEPLOY_POLL_MAX_ATTEMPTS = 5
DEPLOY_POLL_INTERVAL_SECONDS = 60

# =============================================================================
# Remediation (fixer) Polling
# =============================================================================
FIXER_POLL_INTERVAL_SECONDS = 30
FIXER_TIMEOUT_SECONDS = 10 * 60

# =============================================================================
# Sanity Test Execution
# =============================================================================
TEST_REQUEST_TIMEOUT_SECONDS = 30
DEFAULT_REQUEST_HEADERS = {"Content-Type": "application/json"}

# Keys checked, in order, when looking for the deployed API's base URL
BASE_URL_KEYS = (
    "apiUrl",
    "ApiUrl",
    "baseUrl",
    "BaseUrl",
    "endpoint",
    "Endpoint",
    "apiEndpoint",
    "ApiEndpoint",
    "url",
    "Url",
    "ApiGatewayUrl",
    "apiGatewayUrl",
)

LOG_LEVEL = "INFO"
LOG_FORMAT = "[%(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
