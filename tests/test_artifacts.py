"""Tests for artifact coordinates and resolution."""
import httpx
import pytest

from jboss_deploy.deployment.artifacts import ArtifactCoordinates, ArtifactResolver
from jboss_deploy.exceptions import ArtifactResolutionError

COORDINATES = ArtifactCoordinates("org.example", "myapp", "1.0", packaging="war")


class TestArtifactCoordinates:
    """Tests for ArtifactCoordinates."""

    def test_parse(self):
        coordinates = ArtifactCoordinates.parse("org.example:myapp:1.0:war:client")
        assert coordinates.group_id == "org.example"
        assert coordinates.packaging == "war"
        assert coordinates.classifier == "client"
        assert str(coordinates) == "org.example:myapp:1.0:war:client"

    def test_parse_defaults_to_jar(self):
        assert ArtifactCoordinates.parse("org.example:myapp:1.0").packaging == "jar"

    @pytest.mark.parametrize("text", ["org.example:myapp", "a:b:c:d:e:f", "org.example::1.0"])
    def test_parse_invalid(self, text):
        with pytest.raises(ArtifactResolutionError):
            ArtifactCoordinates.parse(text)

    def test_repository_path(self):
        assert COORDINATES.file_name == "myapp-1.0.war"
        assert COORDINATES.repository_path == "org/example/myapp/1.0/myapp-1.0.war"

    def test_classifier_in_file_name(self):
        coordinates = ArtifactCoordinates("org.example", "myapp", "1.0", classifier="tests")
        assert coordinates.file_name == "myapp-1.0-tests.jar"

    @pytest.mark.parametrize("coordinates,missing", [
        (ArtifactCoordinates("org.example", None, "1.0"), "artifactId"),
        (ArtifactCoordinates(None, "myapp", "1.0"), "groupId"),
        (ArtifactCoordinates("org.example", "myapp", None), "version"),
    ])
    def test_validate(self, coordinates, missing):
        with pytest.raises(ArtifactResolutionError) as exc:
            coordinates.validate()
        assert str(exc.value) == f"You must specify the {missing}"


class TestArtifactResolver:
    """Tests for ArtifactResolver."""

    def test_resolve_file(self, archive):
        assert ArtifactResolver().resolve_file(archive) == archive

    def test_resolve_missing_file(self, tmp_path):
        with pytest.raises(ArtifactResolutionError) as exc:
            ArtifactResolver().resolve_file(tmp_path / "missing.war")
        assert str(exc.value) == "File does not exist: missing.war"

    def test_local_repository_hit(self, tmp_path):
        """Artifacts already in the local repository are not downloaded."""
        local = tmp_path / "repo" / COORDINATES.repository_path
        local.parent.mkdir(parents=True)
        local.write_bytes(b"war")

        def handler(request):
            raise AssertionError("unexpected download")

        resolver = ArtifactResolver(tmp_path / "repo", transport=httpx.MockTransport(handler))
        assert resolver.resolve(COORDINATES) == local

    def test_download_from_second_repository(self, tmp_path):
        requested = []

        def handler(request):
            requested.append(str(request.url))
            if request.url.host == "mirror.example.com":
                return httpx.Response(200, content=b"downloaded war")
            return httpx.Response(404)

        resolver = ArtifactResolver(
            tmp_path / "repo",
            remote_repositories=["https://repo.example.com/maven2/", "https://mirror.example.com/maven2"],
            transport=httpx.MockTransport(handler),
        )
        path = resolver.resolve(COORDINATES)

        assert path.read_bytes() == b"downloaded war"
        assert requested == [
            "https://repo.example.com/maven2/org/example/myapp/1.0/myapp-1.0.war",
            "https://mirror.example.com/maven2/org/example/myapp/1.0/myapp-1.0.war",
        ]
        assert not path.with_name(path.name + ".part").exists()

    def test_interrupted_download_removes_partial_file(self, tmp_path):
        class BrokenStream(httpx.SyncByteStream):
            def __iter__(self):
                yield b"partial war"
                raise OSError("No space left on device")

        resolver = ArtifactResolver(
            tmp_path / "repo",
            remote_repositories=["https://repo.example.com/maven2"],
            transport=httpx.MockTransport(lambda request: httpx.Response(200, stream=BrokenStream())),
        )
        with pytest.raises(OSError):
            resolver.resolve(COORDINATES)

        local = tmp_path / "repo" / COORDINATES.repository_path
        assert not local.exists()
        assert list(local.parent.iterdir()) == []

    def test_not_found_anywhere(self, tmp_path):
        resolver = ArtifactResolver(
            tmp_path / "repo",
            remote_repositories=["https://repo.example.com/maven2"],
            transport=httpx.MockTransport(lambda request: httpx.Response(404)),
        )
        with pytest.raises(ArtifactResolutionError) as exc:
            resolver.resolve(COORDINATES)
        assert "org.example:myapp:1.0:war" in str(exc.value)

    def test_http_error(self, tmp_path):
        resolver = ArtifactResolver(
            tmp_path / "repo",
            remote_repositories=["https://repo.example.com/maven2"],
            transport=httpx.MockTransport(lambda request: httpx.Response(403)),
        )
        with pytest.raises(ArtifactResolutionError) as exc:
            resolver.resolve(COORDINATES)
        assert "HTTP 403" in str(exc.value)

    def test_no_remote_repositories(self, tmp_path):
        resolver = ArtifactResolver(tmp_path / "repo", remote_repositories=[])
        with pytest.raises(ArtifactResolutionError):
            resolver.resolve(COORDINATES)

    def test_incomplete_coordinates(self, tmp_path):
        with pytest.raises(ArtifactResolutionError):
            ArtifactResolver(tmp_path).resolve(ArtifactCoordinates(None, "myapp", "1.0"))
