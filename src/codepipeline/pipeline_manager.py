"""
CodePipeline state queries.
"""

import logging
from typing import Any, Dict, List, Optional

import boto3

from config import ReconcilerConfig

logger = logging.getLogger(__name__)

SOURCE_ACTION_NAME = "Source"


class PipelineError(Exception):
    """Base exception for pipeline lookups."""

    pass


class RevisionNotFoundError(PipelineError):
    """No Source action with a revision was found in the pipeline."""

    def __init__(self, pipeline_name: str):
        self.pipeline_name = pipeline_name
        super().__init__(f"Can not locate revision from CodePipeline: {pipeline_name}")


class PipelineManager:
    """Read-only access to CodePipeline execution state."""

    def __init__(
        self,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        config: Optional[ReconcilerConfig] = None,
        client: Any = None,
    ):
        self.config = config or ReconcilerConfig()
        self.region = region or self.config.aws_region
        self.profile = profile or self.config.aws_profile

        if client is None:
            session_args = {"region_name": self.region}
            if self.profile:
                session_args["profile_name"] = self.profile
            session = boto3.Session(**session_args)

            client_args = {}
            if self.config.endpoint_url:
                client_args["endpoint_url"] = self.config.endpoint_url
            logger.debug("Connecting to CodePipeline service")
            client = session.client("codepipeline", **client_args)

        self.codepipeline = client

    def list_state(self, pipeline_name: str) -> List[Dict[str, Any]]:
        """Get the stage states of a pipeline, in pipeline order."""
        logger.debug(f"Searching for pipeline state for pipeline named '{pipeline_name}'")
        response = self.codepipeline.get_pipeline_state(name=pipeline_name)
        return list(response.get("stageStates", []))

    def get_revision(self, pipeline_name: str) -> str:
        """
        Get the source revision a pipeline is currently deploying.

        Args:
            pipeline_name: Name of the pipeline

        Returns:
            Revision id of the first action named "Source"

        Raises:
            RevisionNotFoundError: No stage has a Source action with a revision
        """
        for stage in self.list_state(pipeline_name):
            for action in stage.get("actionStates", []):
                if action.get("actionName") != SOURCE_ACTION_NAME:
                    continue
                revision = (action.get("currentRevision") or {}).get("revisionId")
                if revision:
                    return revision

        raise RevisionNotFoundError(pipeline_name)


def new_pipeline_manager(
    region: Optional[str] = None,
    profile: Optional[str] = None,
    config: Optional[ReconcilerConfig] = None,
) -> PipelineManager:
    """Create a PipelineManager backed by a fresh boto3 session."""
    return PipelineManager(region=region, profile=profile, config=config)
