from sgdeploy import cli
from sgdeploy.errors import DeploymentError
from sgdeploy.render import JinjaTemplateRenderer


class StubDeployer:
    def __init__(self):
        self.requests = []

    def deploy(self, request):
        self.requests.append(request)
        return "arn:aws:cloudformation:eu-west-1:123456789012:stack/sg1/abc"


class BrokenDeployer:
    def deploy(self, request):
        raise DeploymentError("stack sg1 did not reach a complete state")


def test_cli_renders_and_deploys(tmp_path, capsys, base_env, load_rendered):
    output_path = tmp_path / "template.yml"
    deployer = StubDeployer()
    env = dict(base_env, PLUGIN_INGRESS_PORTS="80,443", PLUGIN_INGRESS_CIDRS="10.0.0.0/24")

    exit_code = cli.main(env, renderer=JinjaTemplateRenderer(output_path=output_path), deployer=deployer)

    captured = capsys.readouterr()
    assert exit_code == 0
    assert "plugin_succeeded" in captured.err
    assert deployer.requests[0].template_path == output_path
    props = load_rendered(output_path)["Resources"]["SecurityGroup"]["Properties"]
    assert len(props["SecurityGroupIngress"]) == 2
    assert "SecurityGroupEgress" not in props


def test_cli_logs_configuration_error(tmp_path, capsys):
    deployer = StubDeployer()

    exit_code = cli.main(
        {"PLUGIN_NAME": "sg1"},
        renderer=JinjaTemplateRenderer(output_path=tmp_path / "template.yml"),
        deployer=deployer,
    )

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "plugin_failed" in captured.err
    assert "vpcid not specified" in captured.err
    assert deployer.requests == []


def test_cli_logs_deployment_error(tmp_path, capsys, base_env):
    exit_code = cli.main(
        base_env,
        renderer=JinjaTemplateRenderer(output_path=tmp_path / "template.yml"),
        deployer=BrokenDeployer(),
    )

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "error" in captured.err
    assert "did not reach a complete state" in captured.err


class CrashingDeployer:
    def deploy(self, request):
        raise RuntimeError("boom")


def test_cli_logs_invalid_region(tmp_path, capsys, base_env):
    env = dict(base_env, PLUGIN_REGION="bad region!")

    exit_code = cli.main(env, renderer=JinjaTemplateRenderer(output_path=tmp_path / "template.yml"))

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "plugin_failed" in captured.err
    assert "bad region!" in captured.err


def test_cli_logs_unexpected_error(tmp_path, capsys, base_env):
    exit_code = cli.main(
        base_env,
        renderer=JinjaTemplateRenderer(output_path=tmp_path / "template.yml"),
        deployer=CrashingDeployer(),
    )

    captured = capsys.readouterr()
    assert exit_code == 1
    assert "plugin_failed" in captured.err
    assert "boom" in captured.err


def test_cli_debug_flag_enables_debug_logging(tmp_path, capsys, base_env):
    renderer = JinjaTemplateRenderer(output_path=tmp_path / "template.yml")

    cli.main(dict(base_env, PLUGIN_DEBUG="true"), renderer=renderer, deployer=StubDeployer())
    debug_run = capsys.readouterr()
    cli.main(base_env, renderer=renderer, deployer=StubDeployer())
    quiet_run = capsys.readouterr()

    assert "spec_assembled" in debug_run.err
    assert "spec_assembled" not in quiet_run.err
