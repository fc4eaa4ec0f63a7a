from typing import Any

import pytest
import structlog
import yaml


class CloudFormationLoader(yaml.SafeLoader):
    """YAML loader that maps CloudFormation intrinsic tags such as ``!Ref`` to dicts."""


def _construct_intrinsic(loader: CloudFormationLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        value: Any = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node)
    elif isinstance(node, yaml.MappingNode):
        value = loader.construct_mapping(node)
    else:
        return None
    name = "Ref" if tag_suffix == "Ref" else f"Fn::{tag_suffix}"
    return {name: value}


CloudFormationLoader.add_multi_constructor("!", _construct_intrinsic)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def base_env():
    return {
        "PLUGIN_NAME": "sg1",
        "PLUGIN_VPCID": "vpc-1",
    }


@pytest.fixture
def load_rendered():
    def _load(path):
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.load(handle, Loader=CloudFormationLoader)
        assert isinstance(data, dict)
        return data

    return _load
