"""Expand address ranges and port rules into a security group definition."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import structlog

from .config import PluginConfig, PortRange, ScalarPort, ensure_list, port_rule_from_value

ALL_PROTOCOLS = "-1"

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TrafficRule:
    """One ingress or egress permission for a single CIDR."""

    cidr: str
    from_port: int
    to_port: int
    protocol: str = ALL_PROTOCOLS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "CidrIp": self.cidr,
            "FromPort": self.from_port,
            "ToPort": self.to_port,
            "IpProtocol": self.protocol,
        }


def expand_rules(cidrs: Any, ports: Any) -> List[TrafficRule]:
    """Return the cross product of ``cidrs`` and ``ports``.

    Rules are ordered address-major: every port rule for the first CIDR, then
    every port rule for the second, and so on. A scalar argument counts as a
    one-element list and ``None`` as an empty one.
    """

    port_rules = [port_rule_from_value(port) for port in ensure_list(ports)]
    rules: List[TrafficRule] = []
    for cidr in ensure_list(cidrs):
        for port in port_rules:
            if isinstance(port, ScalarPort):
                rules.append(TrafficRule(cidr=str(cidr), from_port=port.port, to_port=port.port))
            elif isinstance(port, PortRange):
                rules.append(
                    TrafficRule(
                        cidr=str(cidr),
                        from_port=port.from_port,
                        to_port=port.to_port,
                        protocol=port.protocol or ALL_PROTOCOLS,
                    )
                )
    return rules


@dataclass(frozen=True)
class DeploymentSpec:
    """Values substituted into the security group template."""

    name: str
    description: Optional[str]
    vpc_id: str
    ingress_rules: Optional[Tuple[TrafficRule, ...]] = None
    egress_rules: Optional[Tuple[TrafficRule, ...]] = None

    def to_template_context(self) -> Dict[str, Any]:
        """Build the renderer context; empty rule lists are left out entirely."""

        context: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "VpcId": self.vpc_id,
        }
        if self.ingress_rules:
            context["SecurityGroupIngress"] = [rule.to_dict() for rule in self.ingress_rules]
        if self.egress_rules:
            context["SecurityGroupEgress"] = [rule.to_dict() for rule in self.egress_rules]
        return context


def _expand_direction(direction: str, cidrs: Tuple[str, ...], ports: Tuple[Any, ...]) -> Optional[Tuple[TrafficRule, ...]]:
    if bool(cidrs) != bool(ports):
        logger.warning(
            "rules_skipped",
            direction=direction,
            cidrs=len(cidrs),
            ports=len(ports),
            reason="both cidrs and ports are required to produce rules",
        )
    rules = expand_rules(cidrs, ports)
    return tuple(rules) if rules else None


def build_spec(config: PluginConfig) -> DeploymentSpec:
    spec = DeploymentSpec(
        name=config.name,
        description=config.description,
        vpc_id=config.vpc_id,
        ingress_rules=_expand_direction("ingress", config.ingress_cidrs, config.ingress_ports),
        egress_rules=_expand_direction("egress", config.egress_cidrs, config.egress_ports),
    )
    logger.debug(
        "spec_assembled",
        name=spec.name,
        ingress=len(spec.ingress_rules or ()),
        egress=len(spec.egress_rules or ()),
    )
    return spec
