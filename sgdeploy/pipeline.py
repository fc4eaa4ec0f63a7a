"""Linear configure, render and deploy pipeline."""

from __future__ import annotations

from typing import Mapping

import structlog

from .config import LIST_KEYS, PluginConfig, convert_params
from .deploy import Deployer, build_deploy_request
from .errors import PluginError
from .render import TemplateRenderer
from .result import STAGE_COMPLETE, STAGE_CONFIGURE, STAGE_DEPLOY, STAGE_RENDER, PipelineResult
from .security_group import build_spec
from .validation import validate_config

logger = structlog.get_logger(__name__)


def load_config(environ: Mapping[str, str]) -> PluginConfig:
    """Normalize and validate ``environ``, then build the typed configuration."""

    normalized = convert_params(environ, LIST_KEYS)
    validate_config(normalized)
    return PluginConfig.from_normalized(normalized)


def run_pipeline(
    environ: Mapping[str, str],
    renderer: TemplateRenderer,
    deployer: Deployer,
) -> PipelineResult:
    """Run every stage in order, stopping at the first plugin error."""

    result = PipelineResult(stage=STAGE_CONFIGURE)
    try:
        config = load_config(environ)
        spec = build_spec(config)

        result.stage = STAGE_RENDER
        template_path = renderer.render(spec)

        result.stage = STAGE_DEPLOY
        request = build_deploy_request(config, template_path)
        logger.info(
            "deploy_requested",
            stack=request.name,
            region=request.region,
            explicit_credentials=request.credentials is not None,
        )
        result.stack_id = deployer.deploy(request)
    except PluginError as exc:
        result.error = exc
        return result

    result.stage = STAGE_COMPLETE
    return result
