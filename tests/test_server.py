"""Tests for launching and controlling a local server."""
import subprocess
import zipfile
from pathlib import Path

import httpx
import pytest

from jboss_deploy.deployment.artifacts import ArtifactResolver
from jboss_deploy.exceptions import ConfigurationError, OperationFailed, ServerStartError
from jboss_deploy.server.config import ServerConfig, split_args
from jboss_deploy.server.distribution import download, extract_zip, resolve_distribution
from jboss_deploy.server.launcher import (
    StandaloneServer,
    build_launch_command,
    is_server_ready,
    wait_for_reload,
)


class FakeProcess:
    """Stands in for subprocess.Popen."""

    def __init__(self, returncode=None, hang=False):
        self.returncode = returncode
        self.hang = hang
        self.terminated = False
        self.killed = False

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        if self.hang and not self.killed:
            raise subprocess.TimeoutExpired("java", timeout)
        self.returncode = 0 if self.returncode is None else self.returncode
        return self.returncode

    def terminate(self):
        self.terminated = True

    def kill(self):
        self.killed = True


class FakePopen:
    def __init__(self, process):
        self.process = process
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        return self.process


@pytest.fixture
def jboss_home(tmp_path):
    home = tmp_path / "jboss-as-7.1.1.Final"
    (home / "modules").mkdir(parents=True)
    (home / "jboss-modules.jar").write_bytes(b"jar")
    return home


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self, jboss_home, monkeypatch):
        monkeypatch.setenv("JAVA_HOME", "/opt/java")
        config = ServerConfig(jboss_home)
        assert config.java_home == "/opt/java"
        assert config.java_executable == str(Path("/opt/java") / "bin" / "java")
        assert config.modules_path == jboss_home / "modules"
        assert config.bundles_path == jboss_home / "bundles"
        assert config.base_dir == jboss_home / "standalone"
        assert config.config_dir == jboss_home / "standalone" / "configuration"
        assert config.log_dir == jboss_home / "standalone" / "log"
        assert "-Xmx512m" in config.jvm_args

    def test_no_java_home(self, jboss_home, monkeypatch):
        monkeypatch.delenv("JAVA_HOME", raising=False)
        assert ServerConfig(jboss_home).java_executable == "java"

    def test_directory_overrides(self, jboss_home):
        """System properties in the arguments override the derived directories."""
        config = ServerConfig(
            jboss_home,
            jvm_args=["-Djboss.server.base.dir=/srv/base", "-Djboss.server.log.dir=/var/log/first"],
            server_args=["-Djboss.server.log.dir=/var/log/jboss"],
        )
        assert config.base_dir == Path("/srv/base")
        assert config.config_dir == Path("/srv/base/configuration")
        assert config.log_dir == Path("/var/log/jboss")

    def test_config_dir_override(self, jboss_home):
        config = ServerConfig(jboss_home, jvm_args=["-Djboss.server.config.dir=/etc/jboss"])
        assert config.config_dir == Path("/etc/jboss")
        assert config.log_dir == jboss_home / "standalone" / "log"

    def test_validate(self, jboss_home, tmp_path):
        ServerConfig(jboss_home).validate()
        with pytest.raises(ConfigurationError):
            ServerConfig(tmp_path / "missing").validate()
        with pytest.raises(ConfigurationError):
            ServerConfig(jboss_home, modules_dir=str(tmp_path / "nomodules")).validate()

    def test_split_args(self):
        assert split_args("-Xms64m  -Xmx512m") == ["-Xms64m", "-Xmx512m"]
        assert split_args(None) == []


class TestBuildLaunchCommand:
    """Tests for build_launch_command."""

    def test_command_order(self, jboss_home):
        config = ServerConfig(
            jboss_home,
            java_home="/opt/java",
            jvm_args=["-Xmx1g"],
            server_config="standalone-full.xml",
            properties_file="/etc/jboss.properties",
            server_args=["-b", "0.0.0.0"],
        )
        cmd = build_launch_command(config)

        assert cmd[0] == str(Path("/opt/java") / "bin" / "java")
        assert cmd[1] == "-Xmx1g"
        assert cmd[2] == f"-Djboss.home.dir={jboss_home}"
        assert cmd[3] == f"-Dorg.jboss.boot.log.file={jboss_home / 'standalone' / 'log' / 'boot.log'}"
        assert cmd[4].startswith("-Dlogging.configuration=file:")
        assert cmd[5] == f"-Djboss.bundles.dir={jboss_home / 'bundles'}"
        assert cmd[6:8] == ["-jar", str((jboss_home / "jboss-modules.jar").absolute())]
        assert cmd[8:10] == ["-mp", str(jboss_home / "modules")]
        assert cmd[10:13] == ["-jaxpmodule", "javax.xml.jaxp-provider", "org.jboss.as.standalone"]
        assert cmd[13:] == [
            "-server-config", "standalone-full.xml",
            "-P", "/etc/jboss.properties",
            "-b", "0.0.0.0",
        ]

    def test_missing_modules_jar(self, tmp_path):
        with pytest.raises(ServerStartError) as exc:
            build_launch_command(ServerConfig(tmp_path))
        assert "Cannot find" in str(exc.value)


class TestServerState:
    """Tests for readiness and reload helpers."""

    def test_ready(self, server, client):
        assert is_server_ready(client)

    @pytest.mark.parametrize("state", ["starting", "stopping"])
    def test_not_ready(self, server, client, state):
        server.server_state = state
        assert not is_server_ready(client)

    def test_unreachable(self, server, client):
        client.close()
        assert not is_server_ready(client)

    def test_wait_for_reload(self, server, client):
        wait_for_reload(client, timeout=1)
        assert server.reloads == 1

    def test_reload_rejected(self, server, client):
        """A refused reload is reported even though the old server still answers."""
        server.fail_on("reload", "WFLYCTL0332: Permission denied")
        with pytest.raises(OperationFailed) as exc:
            wait_for_reload(client, timeout=1)
        assert "Permission denied" in str(exc.value)
        assert "read-attribute" not in server.operations

    def test_reload_timeout(self, server, client):
        server.server_state = "starting"
        with pytest.raises(ServerStartError) as exc:
            wait_for_reload(client, timeout=0.05, interval=0.01)
        assert "did not reload" in str(exc.value)


class TestStandaloneServer:
    """Tests for StandaloneServer with a fake process."""

    def test_start_and_stop(self, server, connection, jboss_home):
        popen = FakePopen(FakeProcess())
        standalone = StandaloneServer(ServerConfig(jboss_home), connection, popen=popen)

        standalone.start()
        cmd, kwargs = popen.calls[0]
        assert cmd[-1] == "org.jboss.as.standalone"
        assert kwargs["cwd"] == str(jboss_home)

        standalone.wait_for_start(timeout=1, interval=0.01)
        assert standalone.is_running()

        standalone.stop()
        assert server.shutdowns == 1
        assert standalone.process.returncode == 0
        assert not standalone.process.terminated

    def test_already_running(self, connection, jboss_home):
        standalone = StandaloneServer(ServerConfig(jboss_home), connection, popen=FakePopen(FakeProcess()))
        standalone.start()
        with pytest.raises(ServerStartError):
            standalone.start()

    def test_process_exits_during_start(self, server, connection, jboss_home):
        standalone = StandaloneServer(
            ServerConfig(jboss_home), connection, popen=FakePopen(FakeProcess(returncode=1))
        )
        standalone.start()
        with pytest.raises(ServerStartError) as exc:
            standalone.wait_for_start(timeout=0.05, interval=0.01)
        assert "exited with code 1" in str(exc.value)
        assert "read-attribute" not in server.operations

    def test_start_timeout(self, server, connection, jboss_home):
        server.server_state = "starting"
        standalone = StandaloneServer(ServerConfig(jboss_home), connection, popen=FakePopen(FakeProcess()))
        standalone.start()
        with pytest.raises(ServerStartError) as exc:
            standalone.wait_for_start(timeout=0.05, interval=0.01)
        assert "did not start within" in str(exc.value)

    def test_stop_kills_hung_process(self, connection, jboss_home):
        process = FakeProcess(hang=True)
        standalone = StandaloneServer(ServerConfig(jboss_home), connection, popen=FakePopen(process))
        standalone.start()
        standalone.stop(timeout=0.01)
        assert process.terminated
        assert process.killed

    def test_launch_failure(self, connection, jboss_home):
        def popen(cmd, **kwargs):
            raise FileNotFoundError("java")

        standalone = StandaloneServer(ServerConfig(jboss_home), connection, popen=popen)
        with pytest.raises(ServerStartError):
            standalone.start()


class TestDistribution:
    """Tests for locating and unpacking a distribution."""

    def test_explicit_home(self, tmp_path):
        assert resolve_distribution(tmp_path, jboss_home="/opt/jboss") == Path("/opt/jboss")

    def test_resolve_and_extract(self, tmp_path):
        repo = tmp_path / "repo"
        archive = repo / "org/jboss/as/jboss-as-dist/7.1.1.Final/jboss-as-dist-7.1.1.Final.zip"
        archive.parent.mkdir(parents=True)
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("jboss-as-7.1.1.Final/jboss-modules.jar", b"jar")

        home = resolve_distribution(
            tmp_path / "build", resolver=ArtifactResolver(repo, remote_repositories=[])
        )
        assert home == (tmp_path / "build" / "jboss-as-run").absolute() / "jboss-as-7.1.1.Final"
        assert (home / "jboss-modules.jar").exists()

    def test_nothing_to_resolve(self, tmp_path):
        with pytest.raises(ConfigurationError):
            resolve_distribution(tmp_path, version=None, distribution="org.jboss.as:jboss-as-dist")

    def test_invalid_distribution(self, tmp_path):
        with pytest.raises(ConfigurationError):
            resolve_distribution(tmp_path, distribution="jboss-as-dist")

    def test_download(self, tmp_path):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"zip bytes"))
        target = download("https://example.com/jboss-as-7.1.1.Final.zip", tmp_path / "as.zip", transport=transport)
        assert target.read_bytes() == b"zip bytes"

    def test_interrupted_download_removes_partial_file(self, tmp_path):
        class BrokenStream(httpx.SyncByteStream):
            def __iter__(self):
                yield b"partial zip"
                raise OSError("No space left on device")

        transport = httpx.MockTransport(lambda request: httpx.Response(200, stream=BrokenStream()))
        with pytest.raises(OSError):
            download("https://example.com/jboss-as-7.1.1.Final.zip", tmp_path / "as.zip", transport=transport)
        assert list(tmp_path.iterdir()) == []

    def test_extract_refuses_traversal(self, tmp_path):
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../evil.txt", b"x")
        with pytest.raises(ConfigurationError):
            extract_zip(archive, tmp_path / "out")
        assert not (tmp_path / "evil.txt").exists()
