"""Cirrus CI provider over the Cirrus GraphQL API.

Cirrus has no internal queue on the free tier, so availability is derived
from the number of active builds on the repository.
"""

import json
import logging
import shlex
import time
from typing import Any, Dict, Optional

import httpx

from bootforge.config import CirrusProviderSettings
from bootforge.errors import ConfigurationError
from bootforge.providers.base import CIProvider, DispatchResult

logger = logging.getLogger(__name__)

ACTIVE_BUILD_STATUSES = ("CREATED", "EXECUTING", "TRIGGERED")

_REPOSITORY_ID_QUERY = """
query GetRepositoryId($owner: String!, $name: String!) {
  ownerRepository(platform: "github", owner: $owner, name: $name) {
    id
  }
}
"""

_ACTIVE_BUILDS_QUERY = """
query GetActiveBuilds($owner: String!, $name: String!) {
  ownerRepository(platform: "github", owner: $owner, name: $name) {
    id
    builds(last: 50) {
      edges {
        node {
          id
          status
        }
      }
    }
  }
}
"""

_CREATE_BUILD_MUTATION = """
mutation CreateBuild($input: RepositoryCreateBuildInput!) {
  createBuild(input: $input) {
    build {
      id
      branch
      status
    }
  }
}
"""


class GraphQLError(Exception):
    """The Cirrus API answered, but not with usable data."""
    pass


class CirrusCIProvider(CIProvider):

    def __init__(self, config: CirrusProviderSettings, http: httpx.AsyncClient):
        if not config.token:
            raise ConfigurationError("[CI-Cirrus]: Token not found!")
        self.id = f"cirrus:{config.owner}/{config.repo}"
        self._config = config
        self._http = http

    async def _graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run one GraphQL request. Returns the ``data`` object."""
        response = await self._http.post(
            self._config.graphql_url,
            headers={"Authorization": f"Bearer {self._config.token}"},
            json={"query": query, "variables": variables or {}},
        )
        if not response.is_success:
            raise GraphQLError(f"HTTP {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError as e:
            raise GraphQLError(f"Malformed response: {e}") from e
        errors = body.get("errors") or []
        if errors:
            raise GraphQLError(
                "GraphQL errors: " + ", ".join(e.get("message", "") for e in errors)
            )
        return body.get("data") or {}

    async def _repository_id(self) -> str:
        data = await self._graphql(
            _REPOSITORY_ID_QUERY,
            {"owner": self._config.owner, "name": self._config.repo},
        )
        repository = data.get("ownerRepository")
        if not repository:
            raise GraphQLError(
                f"Repository {self._config.owner}/{self._config.repo} not found on Cirrus CI"
            )
        return repository["id"]

    async def active_build_count(self) -> int:
        data = await self._graphql(
            _ACTIVE_BUILDS_QUERY,
            {"owner": self._config.owner, "name": self._config.repo},
        )
        repository = data.get("ownerRepository")
        if not repository:
            raise GraphQLError("Repository not found")
        edges = repository.get("builds", {}).get("edges", [])
        return sum(1 for edge in edges if edge["node"]["status"] in ACTIVE_BUILD_STATUSES)

    async def is_available(self) -> bool:
        try:
            active = await self.active_build_count()
        except (GraphQLError, httpx.HTTPError) as e:
            # Unknown capacity counts as busy to avoid overloading the free tier
            logger.warning("[CI-Cirrus] Could not check active builds: %s", e)
            return False

        available = active < self._config.max_concurrent_tasks
        if not available:
            logger.info(
                "[CI-Cirrus] Not available: %d active builds (limit: %d)",
                active, self._config.max_concurrent_tasks,
            )
        return available

    async def trigger_workflow(self, inputs: Dict[str, Any]) -> DispatchResult:
        logger.info("[CI-Cirrus] Triggering build on %s", self.id)

        metadata_json = inputs.get("other_metadata") or "{}"
        try:
            job_id = json.loads(metadata_json).get("jobId", "")
        except ValueError:
            logger.warning("[CI-Cirrus] Could not parse metadata for jobId")
            job_id = ""

        try:
            repository_id = await self._repository_id()
            data = await self._graphql(_CREATE_BUILD_MUTATION, {
                "input": {
                    "repositoryId": repository_id,
                    "branch": self._config.branch,
                    "clientMutationId": f"bootforge-{int(time.time() * 1000)}",
                    "scriptOverride": build_script_override(
                        inputs.get("video") or "", metadata_json, job_id
                    ),
                },
            })
        except GraphQLError as e:
            logger.warning("[CI-Cirrus] Failed to trigger build: %s", e)
            return DispatchResult(
                success=False,
                message=f"Failed to trigger Cirrus CI build: {e}",
            )

        build = (data.get("createBuild") or {}).get("build")
        if not build:
            return DispatchResult(
                success=False,
                message="Build trigger returned no build data",
            )

        logger.info("[CI-Cirrus] Build triggered: %s", build["id"])
        return DispatchResult(
            success=True,
            run_id=build["id"],
            message=f"Cirrus CI build triggered successfully (ID: {build['id']})",
        )


def build_script_override(video_file_id: str, metadata_json: str, job_id: str) -> str:
    """Shell prelude that exports the job inputs into CIRRUS_ENV.

    Every line is shell-quoted whole, so the env file receives the values
    verbatim and user text in the metadata is never evaluated.
    """
    lines = ["#!/bin/bash"]
    for name, value in (
        ("TRIGGER_TASK", "process_video"),
        ("VIDEO_FILE_ID", video_file_id),
        ("METADATA_JSON", metadata_json),
        ("JOB_ID", job_id),
    ):
        lines.append(f'printf "%s\\n" {shlex.quote(f"{name}={value}")} >> "$CIRRUS_ENV"')
    return "\n".join(lines) + "\n"
