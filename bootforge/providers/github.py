"""GitHub Actions provider: workflow_dispatch on a fixed workflow."""

import logging
from typing import Any, Dict

import httpx

from bootforge.config import GitHubProviderSettings
from bootforge.errors import ConfigurationError
from bootforge.providers.base import CIProvider, DispatchResult

logger = logging.getLogger(__name__)


class GitHubActionsProvider(CIProvider):

    def __init__(self, config: GitHubProviderSettings, http: httpx.AsyncClient):
        if not config.token:
            raise ConfigurationError("[CI-Github]: Token not found!")
        self.id = f"github:{config.owner}/{config.repo}"
        self._config = config
        self._http = http
        self._dispatch_url = (
            f"{config.api_url.rstrip('/')}/repos/{config.owner}/{config.repo}"
            f"/actions/workflows/{config.workflow_id}/dispatches"
        )

    async def is_available(self) -> bool:
        # GitHub queues runs internally and accepts concurrent dispatches.
        return True

    async def trigger_workflow(self, inputs: Dict[str, Any]) -> DispatchResult:
        logger.info("Triggering workflow %s on %s", self._config.workflow_id, self.id)

        response = await self._http.post(
            self._dispatch_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self._config.token}",
                "User-Agent": "Bootforge-Dispatcher",
            },
            json={"ref": self._config.ref, "inputs": inputs},
        )

        if not response.is_success:
            logger.warning(
                "GitHub dispatch rejected (%s): %s", response.status_code, response.text
            )
            return DispatchResult(
                success=False,
                message=f"Status {response.status_code}: {response.text}",
            )

        # 204 No Content, the run id is not known yet
        return DispatchResult(success=True, message="Workflow dispatched successfully.")
