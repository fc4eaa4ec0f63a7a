"""Build the deploy request and submit the rendered template to CloudFormation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from .config import Credentials, PluginConfig
from .errors import DeploymentError
from .utils import read_text_file

CAPABILITIES: Tuple[str, ...] = ("CAPABILITY_NAMED_IAM", "CAPABILITY_IAM")
NO_UPDATES_MESSAGE = "No updates are to be performed"
MISSING_STACK_MESSAGE = "does not exist"
UNRECOVERABLE_STATUSES = frozenset({"ROLLBACK_COMPLETE", "ROLLBACK_FAILED", "DELETE_FAILED"})

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeployRequest:
    """Everything the deployer needs to create or update one stack."""

    name: str
    template_path: Path
    region: str
    credentials: Optional[Credentials] = None
    capabilities: Tuple[str, ...] = CAPABILITIES


def build_deploy_request(config: PluginConfig, template_path: Path) -> DeployRequest:
    """Derive the stack request; credentials are set only when both keys are present."""

    return DeployRequest(
        name=config.name,
        template_path=Path(template_path),
        region=config.region,
        credentials=config.credentials,
    )


class Deployer(Protocol):
    """Protocol implemented by deployment backends."""

    def deploy(self, request: DeployRequest) -> str:
        """Deploy the rendered template and return the stack id."""


def cloudformation_client(request: DeployRequest) -> Any:
    if request.credentials is None:
        # Fall back to the ambient identity (instance profile, task role, env).
        session = boto3.Session(region_name=request.region)
    else:
        session = boto3.Session(
            aws_access_key_id=request.credentials.access_key_id,
            aws_secret_access_key=request.credentials.secret_access_key,
            region_name=request.region,
        )
    return session.client("cloudformation")


def _error_message(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Message", exc))


class CloudFormationDeployer:
    """Create or update a CloudFormation stack and wait until it settles."""

    def __init__(
        self,
        client_factory: Callable[[DeployRequest], Any] = cloudformation_client,
        waiter_config: Optional[Dict[str, int]] = None,
    ) -> None:
        self._client_factory = client_factory
        self._waiter_config = waiter_config

    def deploy(self, request: DeployRequest) -> str:
        try:
            template_body = read_text_file(request.template_path)
        except OSError as exc:
            raise DeploymentError(f"unable to read rendered template {request.template_path}: {exc}") from exc

        try:
            client = self._client_factory(request)
            stack = self._describe_stack(client, request.name)
            if stack is None:
                return self._create_stack(client, request, template_body)
            return self._update_stack(client, request, template_body, stack)
        except WaiterError as exc:
            raise DeploymentError(f"stack {request.name} did not reach a complete state: {exc}") from exc
        except ClientError as exc:
            raise DeploymentError(f"CloudFormation rejected stack {request.name}: {_error_message(exc)}") from exc
        except BotoCoreError as exc:
            raise DeploymentError(f"unable to reach CloudFormation for stack {request.name}: {exc}") from exc

    # ------------------------------------------------------------------
    # Stack operations
    # ------------------------------------------------------------------
    def _describe_stack(self, client: Any, name: str) -> Optional[Dict[str, Any]]:
        try:
            response = client.describe_stacks(StackName=name)
        except ClientError as exc:
            if MISSING_STACK_MESSAGE in _error_message(exc):
                return None
            raise
        stacks = response.get("Stacks", [])
        return stacks[0] if stacks else None

    def _create_stack(self, client: Any, request: DeployRequest, template_body: str) -> str:
        logger.info("stack_create_started", stack=request.name, region=request.region)
        response = client.create_stack(
            StackName=request.name,
            TemplateBody=template_body,
            Capabilities=list(request.capabilities),
        )
        self._wait(client, "stack_create_complete", request.name)
        logger.info("stack_create_complete", stack=request.name)
        return response["StackId"]

    def _update_stack(
        self,
        client: Any,
        request: DeployRequest,
        template_body: str,
        stack: Dict[str, Any],
    ) -> str:
        status = stack.get("StackStatus", "")
        if status in UNRECOVERABLE_STATUSES:
            raise DeploymentError(f"stack {request.name} is in {status} and must be deleted before redeploying")

        logger.info("stack_update_started", stack=request.name, region=request.region, status=status)
        try:
            response = client.update_stack(
                StackName=request.name,
                TemplateBody=template_body,
                Capabilities=list(request.capabilities),
            )
        except ClientError as exc:
            if NO_UPDATES_MESSAGE in _error_message(exc):
                logger.info("stack_unchanged", stack=request.name)
                return stack["StackId"]
            raise
        self._wait(client, "stack_update_complete", request.name)
        logger.info("stack_update_complete", stack=request.name)
        return response["StackId"]

    def _wait(self, client: Any, waiter_name: str, stack_name: str) -> None:
        waiter = client.get_waiter(waiter_name)
        if self._waiter_config:
            waiter.wait(StackName=stack_name, WaiterConfig=self._waiter_config)
        else:
            waiter.wait(StackName=stack_name)
