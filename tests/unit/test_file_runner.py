import pytest

from conftest import AnsibleExitJson, AnsibleFailJson, turbot_resource

from ansible_collections.turbot.core.plugins.module_utils.turbot.errors import (
    DataConflictError,
    JsonFormatError,
    NotFoundError,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.file_runner import (
    FILE_TYPE,
    FileRunner,
    build_data_update_properties,
    get_file_update_properties,
)
from ansible_collections.turbot.core.plugins.modules.turbot_file import (
    RUNNER_CONTEXT,
)

ROOT_AKA = "tmod:@turbot/turbot#/"

FILE_PARAMS = {
    "parent": ROOT_AKA,
    "title": None,
    "description": None,
    "data": None,
    "metadata": None,
    "tags": None,
    "akas": None,
}


@pytest.fixture
def make_runner(make_module, client):
    def _make(check_mode=False, **params):
        module = make_module(check_mode=check_mode, **{**FILE_PARAMS, **params})
        return FileRunner(module, RUNNER_CONTEXT, client=client)

    return _make


def remote(resources):
    """Serves read_resource() calls from a map of id or aka -> result."""

    def read_resource(id, properties=None):
        if id not in resources:
            raise NotFoundError(f"Resource '{id}' Not Found.")
        return resources[id]

    return read_resource


PARENT = turbot_resource("1", akas=[ROOT_AKA])


def test_create_builds_mutation_input(make_runner, client):
    runner = make_runner(
        title="Provider Test",
        description="Managed",
        data='{"b": 1, "a": 2}',
        tags={"env": "test"},
        akas=["my-file"],
    )
    client.create_resource.return_value = {"id": "100", "parentId": "1", "custom": {}}
    client.read_resource.side_effect = remote({"1": PARENT})

    runner.create()

    client.create_resource.assert_called_once_with(
        {
            "parent": ROOT_AKA,
            "tags": {"env": "test"},
            "akas": ["my-file"],
            "data": {"b": 1, "a": 2},
            "metadata": {"title": "Provider Test", "description": "Managed"},
            "type": FILE_TYPE,
        }
    )
    assert runner.data.id() == "100"
    assert runner.data.get("data") == '{"a":2,"b":1}'
    assert runner.data.get("parent_akas") == [ROOT_AKA]


def test_create_with_conflicting_title_fails_before_remote_call(make_runner, client):
    runner = make_runner(title="X", data="{}", metadata='{"title": "Y"}')

    with pytest.raises(DataConflictError, match="title"):
        runner.create()
    assert client.method_calls == []


def test_metadata_title_is_mirrored_to_top_level(make_runner):
    runner = make_runner(data="{}", metadata='{"title": "From metadata"}')

    input = runner.build_file_input(["parent"])

    assert input["metadata"] == {"title": "From metadata"}
    assert runner.data.get("title") == "From metadata"


def test_create_with_malformed_data(make_runner, client):
    runner = make_runner(title="T", data='{"foo": ')

    with pytest.raises(JsonFormatError, match="failed to unmarshal data"):
        runner.create()
    assert client.method_calls == []


def test_run_reports_conflict_as_module_failure(make_runner, client):
    runner = make_runner(title="X", data="{}", metadata='{"title": "Y"}')

    with pytest.raises(AnsibleFailJson) as exc:
        runner.run()
    assert "error data mismatch" in exc.value.result["msg"]
    assert client.method_calls == []


def test_read_not_found_clears_identity(make_runner, client):
    runner = make_runner(id="100")
    client.read_resource.side_effect = remote({})

    with pytest.raises(NotFoundError):
        runner.read()
    assert runner.data.id() == ""


def test_read_reconciles_metadata(make_runner, client):
    runner = make_runner(
        id="100",
        title="T",
        data='{"foo": "bar"}',
        metadata='{"description": "D"}',
    )
    client.read_resource.side_effect = remote(
        {
            "100": turbot_resource(
                "100",
                parent_id="1",
                data={"foo": "bar"},
                custom={"title": "Remote T", "description": "D", "owner": "ops"},
                tags={"env": "test"},
                akas=["arn:file"],
            ),
            "1": PARENT,
        }
    )

    runner.read()

    client.read_resource.assert_any_call("100", {"foo": "foo"})
    assert runner.data.get("title") == "Remote T"
    # Title is not part of the configured metadata, so it is dropped there.
    assert runner.data.get("metadata") == '{"description":"D","owner":"ops"}'
    assert runner.data.get("data") == '{"foo":"bar"}'
    assert runner.data.get("parent") == "1"
    assert runner.data.get("parent_akas") == [ROOT_AKA]
    assert runner.data.get("tags") == {"env": "test"}
    assert runner.data.get("akas") == ["arn:file"]


def test_read_with_malformed_configured_data(make_runner, client):
    runner = make_runner(id="100", data="{oops")

    with pytest.raises(JsonFormatError, match="error retrieving properties"):
        runner.read()
    assert client.method_calls == []


def test_update_restricts_data_to_update_schema(make_runner, client):
    runner = make_runner(id="100", title="T", data='{"foo": "new", "locked": 1}')
    client.read_update_schema_properties.return_value = ["foo"]
    client.update_resource.return_value = {
        "id": "100",
        "parentId": "1",
        "custom": {"title": "T", "description": "Remote"},
    }
    client.read_resource.side_effect = remote({"1": PARENT})

    runner.update()

    input = client.update_resource.call_args[0][0]
    assert input["id"] == "100"
    assert input["data"] == {"foo": "new"}
    assert input["metadata"] == {"title": "T"}
    assert "type" not in input
    assert runner.data.get("description") == "Remote"
    assert runner.data.get("data") == '{"foo":"new","locked":1}'


def test_update_properties_exclude_type():
    assert get_file_update_properties() == ["parent", "tags", "akas"]


def test_build_data_update_properties_without_restriction():
    assert build_data_update_properties({"a": 1}, []) == {"a": 1}


def _existing_file(client, data):
    client.resource_exists.return_value = True
    client.read_resource.side_effect = remote(
        {
            "100": turbot_resource(
                "100", parent_id="1", data=data, custom={"title": "T"}
            ),
            "1": PARENT,
        }
    )


def test_run_is_idempotent_when_nothing_changed(make_runner, client):
    runner = make_runner(id="100", title="T", data='{"foo": "bar"}')
    _existing_file(client, {"foo": "bar"})

    with pytest.raises(AnsibleExitJson) as exc:
        runner.run()

    result = exc.value.result
    assert result["changed"] is False
    assert result["commands"] == []
    assert result["id"] == "100"
    client.update_resource.assert_not_called()


def test_run_updates_changed_data(make_runner, client):
    runner = make_runner(id="100", title="T", data='{"foo": "baz"}')
    _existing_file(client, {"foo": "bar"})
    client.read_update_schema_properties.return_value = []
    client.update_resource.return_value = {
        "id": "100",
        "parentId": "1",
        "custom": {"title": "T"},
    }

    with pytest.raises(AnsibleExitJson) as exc:
        runner.run()

    result = exc.value.result
    assert result["changed"] is True
    assert result["commands"][0]["type"] == "update"
    input = client.update_resource.call_args[0][0]
    assert input["data"] == {"foo": "baz"}
    assert input["parent"] == ROOT_AKA


def test_run_creates_missing_file(make_runner, client):
    runner = make_runner(title="T", data="{}", akas=["my-file"])
    client.resource_exists.return_value = False
    client.create_resource.return_value = {"id": "100", "parentId": "1", "custom": {}}
    client.read_resource.side_effect = remote({"1": PARENT})

    with pytest.raises(AnsibleExitJson) as exc:
        runner.run()

    result = exc.value.result
    assert result["changed"] is True
    assert result["id"] == "100"
    assert result["resource"]["parent_akas"] == [ROOT_AKA]
    client.resource_exists.assert_called_once_with("my-file")


def test_run_finds_existing_file_by_aka(make_runner, client):
    runner = make_runner(title="T", data='{"foo": "bar"}', akas=["my-file"])
    _existing_file(client, {"foo": "bar"})
    resources = {
        "100": turbot_resource(
            "100",
            parent_id="1",
            data={"foo": "bar"},
            custom={"title": "T"},
            akas=["my-file"],
        ),
        "my-file": turbot_resource("100", akas=["my-file"]),
        "1": PARENT,
    }
    client.read_resource.side_effect = remote(resources)

    with pytest.raises(AnsibleExitJson) as exc:
        runner.run()

    assert exc.value.result["changed"] is False
    assert exc.value.result["id"] == "100"
    client.create_resource.assert_not_called()


def test_check_mode_predicts_creation(make_runner, client):
    runner = make_runner(check_mode=True, title="T", data="{}")

    with pytest.raises(AnsibleExitJson) as exc:
        runner.run()

    assert exc.value.result["changed"] is True
    assert exc.value.result["commands"][0]["type"] == "create"
    client.create_resource.assert_not_called()


def test_run_deletes_existing_file(make_runner, client):
    runner = make_runner(id="100", state="absent")
    _existing_file(client, {})

    with pytest.raises(AnsibleExitJson) as exc:
        runner.run()

    client.delete_resource.assert_called_once_with("100")
    assert exc.value.result["changed"] is True
    assert exc.value.result["id"] is None


def test_run_with_stale_id_and_absent_state_does_nothing(make_runner, client):
    runner = make_runner(id="100", state="absent")
    client.resource_exists.return_value = False

    with pytest.raises(AnsibleExitJson) as exc:
        runner.run()

    assert exc.value.result["changed"] is False
    assert exc.value.result["id"] is None
    client.delete_resource.assert_not_called()


@pytest.mark.parametrize("check_mode", [True, False])
def test_run_reports_conflict_when_updating(make_runner, client, check_mode):
    runner = make_runner(
        check_mode=check_mode,
        id="100",
        title="X",
        data="{}",
        metadata='{"title": "Y"}',
    )
    client.resource_exists.return_value = True
    client.read_resource.side_effect = remote(
        {
            "100": turbot_resource("100", parent_id="1", custom={"title": "X"}),
            "1": PARENT,
        }
    )

    with pytest.raises(AnsibleFailJson) as exc:
        runner.run()

    assert "error data mismatch" in exc.value.result["msg"]
    client.read_update_schema_properties.assert_not_called()
    client.update_resource.assert_not_called()
