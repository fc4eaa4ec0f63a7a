"""Exception hierarchy raised by the plugin stages."""

from __future__ import annotations


class PluginError(Exception):
    """Base class for every failure the pipeline reports."""


class ConfigurationError(PluginError):
    """Raised when the pipeline parameters are missing or malformed."""


class RenderError(PluginError):
    """Raised when the CloudFormation template cannot be read, rendered or written."""


class DeploymentError(PluginError):
    """Raised when CloudFormation rejects or fails the stack operation."""
