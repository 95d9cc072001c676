"""Tests for the resource existence check."""
import pytest

from jboss_deploy.exceptions import EmptyAddress, OperationFailed
from jboss_deploy.management.address import Address, parse_address
from jboss_deploy.resources.existence import resource_exists


class TestResourceExists:
    """Tests for resource_exists against the fake server."""

    def test_found(self, server, client):
        """The resource is among its parent's children."""
        server.add_resource("subsystem=datasources")
        server.add_resource("subsystem=datasources,data-source=ExampleDS")
        server.add_resource("subsystem=datasources,data-source=OtherDS")

        result = resource_exists(parse_address(None, "subsystem=datasources,data-source=ExampleDS"), client)
        assert result
        assert result.found
        assert result.child_count == 2

    def test_no_children_of_type(self, server, client):
        """A parent without children of the type means not found."""
        server.add_resource("subsystem=datasources")

        result = resource_exists(parse_address(None, "subsystem=datasources,data-source=ExampleDS"), client)
        assert not result
        assert result.child_count == 0

    def test_name_not_matched(self, server, client):
        server.add_resource("subsystem=datasources")
        server.add_resource("subsystem=datasources,data-source=OtherDS")

        result = resource_exists(parse_address(None, "subsystem=datasources,data-source=ExampleDS"), client)
        assert not result.found
        assert result.child_count == 1

    def test_reads_parent_non_recursively(self, server, client):
        server.add_resource("subsystem=logging")
        resource_exists(parse_address(None, "subsystem=logging,console-handler=CONSOLE"), client)

        request = server.requests[-1]
        assert request["operation"] == "read-resource"
        assert request["address"] == [{"subsystem": "logging"}]
        assert request["recursive"] is False

    def test_top_level_reads_root(self, server, client):
        server.add_resource("subsystem=logging")
        assert resource_exists(parse_address(None, "subsystem=logging"), client)
        assert server.requests[-1]["address"] == []

    def test_parent_read_fails(self, server, client):
        """The server's failure description is kept verbatim."""
        with pytest.raises(OperationFailed) as exc:
            resource_exists(parse_address(None, "subsystem=missing,handler=x"), client)
        assert exc.value.description.startswith("WFLYCTL0216")
        assert "subsystem" in exc.value.description

    def test_empty_address(self, client):
        with pytest.raises(EmptyAddress):
            resource_exists(Address(), client)
