import json
from unittest.mock import MagicMock

import pytest


class AnsibleExitJson(Exception):
    """Raised in place of `module.exit_json` so a test can inspect the result."""

    def __init__(self, kwargs):
        super().__init__(kwargs)
        self.result = kwargs


class AnsibleFailJson(Exception):
    """Raised in place of `module.fail_json` so a test can inspect the failure."""

    def __init__(self, kwargs):
        super().__init__(kwargs.get("msg"))
        self.result = kwargs


def _exit_json(**kwargs):
    raise AnsibleExitJson(kwargs)


def _fail_json(**kwargs):
    raise AnsibleFailJson(kwargs)


CONNECTION_PARAMS = {
    "workspace": "https://example.cloud.turbot.com",
    "access_key": "ak",
    "secret_key": "sk",
    "validate_certs": True,
    "timeout": 30,
    "state": "present",
    "id": None,
}


@pytest.fixture
def make_module():
    """Builds a stand-in for AnsibleModule with the given module params."""

    def _make(check_mode=False, **params):
        module = MagicMock()
        module.params = {**CONNECTION_PARAMS, **params}
        module.check_mode = check_mode
        module.exit_json.side_effect = _exit_json
        module.fail_json.side_effect = _fail_json
        module.jsonify.side_effect = json.dumps
        return module

    return _make


@pytest.fixture
def client():
    return MagicMock()


def turbot_resource(id, akas=None, parent_id=None, data=None, custom=None, tags=None):
    """Builds a read_resource() result."""
    return {
        "data": data or {},
        "turbot": {
            "id": id,
            "parentId": parent_id,
            "akas": akas or [],
            "tags": tags or {},
            "custom": custom or {},
        },
    }
