"""Shared fixtures: an in-memory management server behind httpx.MockTransport."""
import base64
import copy
import hashlib
import json

import httpx
import pytest

from jboss_deploy.client.base import ManagementClient
from jboss_deploy.client.connection import ServerConnection
from jboss_deploy.config.settings import ConnectionSettings


def _address(op):
    return tuple((k, v) for segment in op.get("address", []) for k, v in segment.items())


def _render(address):
    return "[" + ", ".join(f'("{k}" => "{v}")' for k, v in address) + "]"


class FakeManagementServer:
    """Just enough of a management endpoint to exercise the client code.

    Resources live in a flat dict keyed by address tuple. Deployments are
    resources under ("deployment", name) with content/enabled attributes.
    """

    def __init__(self, launch_type="STANDALONE", server_state="running"):
        self.launch_type = launch_type
        self.server_state = server_state
        self.resources = {}
        self.requests = []
        self.uploads = []
        self.failures = {}
        self.reload_required = set()
        self.require_auth = False
        self.auth_headers = []
        self.reloads = 0
        self.shutdowns = 0
        self.transport = httpx.MockTransport(self.handle)

    # --- Test setup helpers ---

    def add_resource(self, address, **attributes):
        if isinstance(address, str):
            address = tuple(tuple(part.split("=")) for part in address.split(","))
        self.resources[tuple(address)] = dict(attributes)

    def add_deployment(self, name, enabled=True, content="old"):
        self.resources[(("deployment", name),)] = {"enabled": enabled, "content": content}

    def fail_on(self, operation, description="Operation failed"):
        self.failures[operation] = description

    @property
    def deployments(self):
        return {addr[0][1]: attrs for addr, attrs in self.resources.items()
                if len(addr) == 1 and addr[0][0] == "deployment"}

    @property
    def operations(self):
        """Names of operations received, composites listed as such."""
        return [op["operation"] for op in self.requests]

    def submitted(self, name):
        return [op for op in self.requests if op["operation"] == name]

    # --- HTTP ---

    def handle(self, request: httpx.Request) -> httpx.Response:
        if self.require_auth:
            header = request.headers.get("Authorization", "")
            if not header.startswith("Digest "):
                return httpx.Response(
                    401,
                    headers={"WWW-Authenticate": 'Digest realm="ManagementRealm", nonce="abc123", qop="auth"'},
                    text="Unauthorized",
                )
            self.auth_headers.append(header)

        if request.url.path.endswith("/add-content"):
            body = request.read()
            digest = hashlib.sha1(body).digest()
            content_hash = base64.b64encode(digest).decode()
            self.uploads.append(content_hash)
            return httpx.Response(200, json={"outcome": "success", "result": {"BYTES_VALUE": content_hash}})

        op = json.loads(request.content)
        self.requests.append(op)
        result = self.execute(op)
        status = 200 if result["outcome"] == "success" else 500
        return httpx.Response(status, json=result)

    # --- Operations ---

    def execute(self, op):
        name = op["operation"]
        if name in self.failures:
            return self._failed(self.failures[name])
        if name == "composite":
            return self._composite(op)
        handler = getattr(self, "_op_" + name.replace("-", "_"), None)
        if handler is None:
            return self._failed(f"WFLYCTL0031: No operation named '{name}' exists")
        return handler(op, _address(op))

    @staticmethod
    def _ok(result=None, headers=None):
        response = {"outcome": "success"}
        if result is not None:
            response["result"] = result
        if headers:
            response["response-headers"] = headers
        return response

    @staticmethod
    def _failed(description):
        return {"outcome": "failed", "failure-description": description, "rolled-back": True}

    def _exists(self, address):
        return address == () or address in self.resources

    def _not_found(self, address):
        return self._failed(f"WFLYCTL0216: Management resource '{_render(address)}' not found")

    def _composite(self, op):
        snapshot = copy.deepcopy(self.resources)
        results = {}
        failed_step = None
        for index, step in enumerate(op["steps"], start=1):
            key = f"step-{index}"
            if failed_step is not None:
                results[key] = {"outcome": "cancelled"}
                continue
            step_result = self.execute(step)
            step_result.pop("rolled-back", None)
            if step["operation"] in self.reload_required and step_result["outcome"] == "success":
                step_result["response-headers"] = {
                    "operation-requires-reload": True,
                    "process-state": "reload-required",
                }
            results[key] = step_result
            if step_result["outcome"] != "success":
                failed_step = (key, step_result["failure-description"])

        if failed_step is None:
            return {"outcome": "success", "result": results}

        self.resources = snapshot
        return {
            "outcome": "failed",
            "result": results,
            "failure-description": {
                "WFLYCTL0062: Composite operation failed and was rolled back. Steps that failed:": {
                    f"Operation {failed_step[0]}": failed_step[1]
                }
            },
            "rolled-back": True,
        }

    def _op_read_attribute(self, op, address):
        attribute = op["name"]
        if address == ():
            if attribute == "launch-type":
                return self._ok(self.launch_type)
            if attribute == "server-state":
                return self._ok(self.server_state)
        if not self._exists(address):
            return self._not_found(address)
        attributes = self.resources.get(address, {})
        if attribute not in attributes:
            return self._failed(f"WFLYCTL0201: Unknown attribute '{attribute}'")
        return self._ok(attributes[attribute])

    def _op_read_resource(self, op, address):
        if not self._exists(address):
            return self._not_found(address)
        model = dict(self.resources.get(address, {}))
        for child in self.resources:
            if len(child) == len(address) + 1 and child[:len(address)] == address:
                child_type, child_name = child[-1]
                model.setdefault(child_type, {})[child_name] = None
        return self._ok(model)

    def _op_read_children_names(self, op, address):
        if not self._exists(address):
            return self._not_found(address)
        child_type = op["child-type"]
        names = [child[-1][1] for child in self.resources
                 if len(child) == len(address) + 1 and child[:len(address)] == address
                 and child[-1][0] == child_type]
        return self._ok(names)

    def _op_add(self, op, address):
        if address in self.resources:
            return self._failed(f"WFLYCTL0212: Duplicate resource {_render(address)}")
        if not self._exists(address[:-1]):
            return self._not_found(address[:-1])
        attributes = {k: v for k, v in op.items() if k not in ("operation", "address")}
        if address and address[0][0] == "deployment":
            attributes.setdefault("enabled", False)
        self.resources[address] = attributes
        return self._ok()

    def _op_remove(self, op, address):
        if address not in self.resources:
            return self._not_found(address)
        for child in list(self.resources):
            if child[:len(address)] == address:
                del self.resources[child]
        return self._ok()

    def _op_enable(self, op, address):
        if address not in self.resources:
            return self._not_found(address)
        self.resources[address]["enabled"] = True
        return self._ok()

    def _op_deploy(self, op, address):
        return self._op_enable(op, address)

    def _op_undeploy(self, op, address):
        if address not in self.resources:
            return self._not_found(address)
        self.resources[address]["enabled"] = False
        return self._ok()

    def _op_full_replace_deployment(self, op, address):
        deployment = (("deployment", op["name"]),)
        if deployment not in self.resources:
            return self._failed(f"WFLYSRV0015: No deployment with name {op['name']} found")
        attributes = self.resources[deployment]
        if "enabled" in op:
            return self._failed("WFLYCTL0197: Unexpected attribute 'enabled' encountered")
        attributes["content"] = op["content"]
        return self._ok()

    def _op_redeploy(self, op, address):
        return self._op_enable(op, address)

    def _op_reload(self, op, address):
        self.reloads += 1
        return self._ok()

    def _op_shutdown(self, op, address):
        self.shutdowns += 1
        return self._ok()


@pytest.fixture
def server():
    return FakeManagementServer()


@pytest.fixture
def domain_server():
    fake = FakeManagementServer(launch_type="DOMAIN")
    fake.add_resource((("profile", "full"),))
    fake.add_resource((("profile", "ha"),))
    return fake


@pytest.fixture
def client(server):
    with ManagementClient("127.0.0.1", 9990, transport=server.transport) as c:
        yield c


def make_connection(fake, **kwargs):
    return ServerConnection(
        "localhost",
        9990,
        transport=fake.transport,
        resolve_host=lambda hostname: "127.0.0.1",
        **kwargs,
    )


@pytest.fixture
def connect():
    """Factory for connections to a given fake server."""
    return make_connection


@pytest.fixture
def connection(server):
    with make_connection(server) as conn:
        yield conn


@pytest.fixture
def settings():
    return ConnectionSettings(hostname="localhost", port=9990, username="admin", password="secret")


@pytest.fixture
def goal_options(server):
    return {"transport": server.transport, "resolve_host": lambda hostname: "127.0.0.1"}


@pytest.fixture
def archive(tmp_path):
    path = tmp_path / "myapp.war"
    path.write_bytes(b"PK\x03\x04 fake war content")
    return path
