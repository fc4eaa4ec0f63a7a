"""Process entry point: environment in, exit code out."""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping, Optional

import structlog

from .config import DEBUG, parse_flag
from .deploy import CloudFormationDeployer, Deployer
from .pipeline import run_pipeline
from .render import JinjaTemplateRenderer, TemplateRenderer

logger = structlog.get_logger(__name__)


def configure_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def main(
    environ: Optional[Mapping[str, str]] = None,
    renderer: Optional[TemplateRenderer] = None,
    deployer: Optional[Deployer] = None,
) -> int:
    env = os.environ if environ is None else environ
    configure_logging(parse_flag(env.get(DEBUG), default=False))

    try:
        result = run_pipeline(
            env,
            renderer or JinjaTemplateRenderer(),
            deployer or CloudFormationDeployer(),
        )
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("plugin_failed", stage="unexpected", error=str(exc))
        return 1

    if result.error is not None:
        logger.error("plugin_failed", stage=result.stage, error=str(result.error))
    else:
        logger.info("plugin_succeeded", stack_id=result.stack_id)
    return result.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
