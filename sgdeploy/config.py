"""Normalize plugin parameters and expose them as an explicit configuration."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

ACCESS_KEY = "PLUGIN_ACCESS_KEY"
SECRET_KEY = "PLUGIN_SECRET_KEY"
YAML_VERIFIED = "DRONE_YAML_VERIFIED"
NAME = "PLUGIN_NAME"
DESCRIPTION = "PLUGIN_DESCRIPTION"
VPC_ID = "PLUGIN_VPCID"
REGION = "PLUGIN_REGION"
DEBUG = "PLUGIN_DEBUG"
INGRESS_PORTS = "PLUGIN_INGRESS_PORTS"
INGRESS_CIDRS = "PLUGIN_INGRESS_CIDRS"
EGRESS_PORTS = "PLUGIN_EGRESS_PORTS"
EGRESS_CIDRS = "PLUGIN_EGRESS_CIDRS"

LIST_KEYS: Tuple[str, ...] = (INGRESS_PORTS, INGRESS_CIDRS, EGRESS_PORTS, EGRESS_CIDRS)

DEFAULT_REGION = "eu-west-1"
FALSE_VALUES = frozenset({"false", "0", "no", "off"})

PORT_PATTERN = re.compile(r"-?[0-9]+")

FROM_PORT_KEYS = ("from_port", "fromPort")
TO_PORT_KEYS = ("to_port", "toPort")


def convert_param(param: Optional[str]) -> Any:
    """Decode a JSON parameter, falling back to a comma-separated list.

    A value that fails to parse, or parses to something falsy (``0``, ``""``,
    ``[]``), is split on commas instead.
    """

    if param is None:
        return None

    converted: Any = None
    try:
        converted = json.loads(param)
    except ValueError:
        converted = None

    if not converted:
        converted = [item.strip() for item in param.split(",")]
    return converted


def convert_params(params: Mapping[str, str], keys: Tuple[str, ...] = LIST_KEYS) -> Dict[str, Any]:
    """Return a shallow copy of ``params`` with ``keys`` run through :func:`convert_param`."""

    converted: Dict[str, Any] = dict(params)
    for key in keys:
        converted[key] = convert_param(params.get(key))
    return converted


def ensure_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def parse_flag(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in FALSE_VALUES


def parse_port_number(value: Any) -> int:
    """Return ``value`` as an integer port, raising ``ValueError`` otherwise."""

    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not a port number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"{value!r} is not a port number")
    if isinstance(value, str):
        text = value.strip()
        if not PORT_PATTERN.fullmatch(text):
            raise ValueError(f"{value!r} is not a port number")
        return int(text)
    raise ValueError(f"{value!r} is not a port number")


def lookup_bound(port: Mapping[str, Any], keys: Tuple[str, ...]) -> Tuple[bool, Any]:
    for key in keys:
        if key in port:
            return True, port[key]
    return False, None


@dataclass(frozen=True)
class ScalarPort:
    """A single port opened for every protocol."""

    port: int


@dataclass(frozen=True)
class PortRange:
    """An explicit ``from_port``/``to_port`` range with an optional protocol."""

    from_port: int
    to_port: int
    protocol: Optional[str] = None


PortRule = Union[ScalarPort, PortRange]


def port_rule_from_value(value: Any) -> PortRule:
    """Turn a validated port entry into its tagged variant."""

    if isinstance(value, (ScalarPort, PortRange)):
        return value
    if isinstance(value, Mapping):
        _, from_port = lookup_bound(value, FROM_PORT_KEYS)
        _, to_port = lookup_bound(value, TO_PORT_KEYS)
        protocol = value.get("protocol")
        return PortRange(
            from_port=parse_port_number(from_port),
            to_port=parse_port_number(to_port),
            protocol=str(protocol) if protocol not in (None, "") else None,
        )
    return ScalarPort(parse_port_number(value))


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


@dataclass(frozen=True)
class Credentials:
    access_key_id: str
    secret_access_key: str


@dataclass(frozen=True)
class PluginConfig:
    """Typed view over a validated, normalized parameter mapping."""

    name: str
    vpc_id: str
    description: Optional[str] = None
    region: str = DEFAULT_REGION
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    yaml_verified: bool = True
    ingress_cidrs: Tuple[str, ...] = ()
    ingress_ports: Tuple[PortRule, ...] = ()
    egress_cidrs: Tuple[str, ...] = ()
    egress_ports: Tuple[PortRule, ...] = ()

    @classmethod
    def from_normalized(cls, params: Mapping[str, Any]) -> "PluginConfig":
        return cls(
            name=str(params[NAME]),
            vpc_id=str(params[VPC_ID]),
            description=_optional_text(params.get(DESCRIPTION)),
            region=_optional_text(params.get(REGION)) or DEFAULT_REGION,
            access_key=_optional_text(params.get(ACCESS_KEY)),
            secret_key=_optional_text(params.get(SECRET_KEY)),
            yaml_verified=parse_flag(params.get(YAML_VERIFIED)),
            ingress_cidrs=tuple(str(cidr) for cidr in ensure_list(params.get(INGRESS_CIDRS))),
            ingress_ports=tuple(port_rule_from_value(port) for port in ensure_list(params.get(INGRESS_PORTS))),
            egress_cidrs=tuple(str(cidr) for cidr in ensure_list(params.get(EGRESS_CIDRS))),
            egress_ports=tuple(port_rule_from_value(port) for port in ensure_list(params.get(EGRESS_PORTS))),
        )

    @property
    def credentials(self) -> Optional[Credentials]:
        if self.access_key and self.secret_key:
            return Credentials(self.access_key, self.secret_key)
        return None
