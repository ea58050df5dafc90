from __future__ import annotations

# Azure DevOps / GitHub REST calls. No retries: a failed call stops the
# product's walk and the next scheduled run picks it up again.
HTTP_TIMEOUT_SECONDS = 60.0
