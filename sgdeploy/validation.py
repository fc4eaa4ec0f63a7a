"""Fail-fast validation of normalized plugin parameters."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .config import (
    ACCESS_KEY,
    EGRESS_PORTS,
    FROM_PORT_KEYS,
    INGRESS_PORTS,
    NAME,
    SECRET_KEY,
    TO_PORT_KEYS,
    VPC_ID,
    YAML_VERIFIED,
    ensure_list,
    lookup_bound,
    parse_flag,
    parse_port_number,
)
from .errors import ConfigurationError


def _present(value: Any) -> bool:
    return value is not None and value != ""


def validate_config(config: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Return ``config`` unchanged or raise on the first rule it breaks.

    Rules are checked in order: credential pairing, the unverified-pipeline
    policy, required name and VPC id, then ingress and egress ports.
    """

    if config is None:
        raise ConfigurationError("configuration is invalid")

    has_access_key = _present(config.get(ACCESS_KEY))
    has_secret_key = _present(config.get(SECRET_KEY))
    yaml_verified = parse_flag(config.get(YAML_VERIFIED))

    if has_secret_key and not has_access_key:
        raise ConfigurationError("missing AWS access key")

    if has_access_key and not has_secret_key:
        raise ConfigurationError("missing AWS secret key")

    # An unverified pipeline must not run under the ambient IAM role.
    if not yaml_verified and not has_access_key and not has_secret_key:
        raise ConfigurationError("unverified pipeline configuration requires explicit AWS credentials")

    if not config.get(NAME):
        raise ConfigurationError("name not specified")

    if not config.get(VPC_ID):
        raise ConfigurationError("vpcid not specified")

    if config.get(INGRESS_PORTS):
        validate_ports(config[INGRESS_PORTS])
    if config.get(EGRESS_PORTS):
        validate_ports(config[EGRESS_PORTS])

    return config


def validate_port(port: Any) -> None:
    try:
        parse_port_number(port)
    except ValueError as exc:
        raise ConfigurationError("port is not a number") from exc


def validate_ports(ports: Any) -> None:
    for port in ensure_list(ports):
        if isinstance(port, Mapping):
            has_from, from_port = lookup_bound(port, FROM_PORT_KEYS)
            has_to, to_port = lookup_bound(port, TO_PORT_KEYS)
            if not has_from or not has_to:
                raise ConfigurationError("port is missing from_port or to_port property")
            validate_port(from_port)
            validate_port(to_port)
        else:
            validate_port(port)
