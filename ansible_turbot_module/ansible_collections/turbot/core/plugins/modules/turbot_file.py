#!/usr/bin/python

DOCUMENTATION = r"""
---
module: turbot_file
short_description: Manage file resources in a Turbot workspace
description:
  - Create, update and delete a Turbot file resource holding an arbitrary JSON payload.
  - An existing file is found through O(id) or, when omitted, through any of its O(akas).
options:
  workspace:
    description: URL of the Turbot workspace.
    type: str
    required: true
  access_key:
    description: Turbot access key. Falls back to E(TURBOT_ACCESS_KEY).
    type: str
    required: true
  secret_key:
    description: Turbot secret key. Falls back to E(TURBOT_SECRET_KEY).
    type: str
    required: true
  validate_certs:
    description: Whether to validate the workspace TLS certificate.
    type: bool
    default: true
  timeout:
    description: Timeout in seconds for each API call.
    type: int
    default: 30
  state:
    description: Whether the file should exist.
    type: str
    default: present
    choices: [present, absent]
  id:
    description: Id of an existing file to manage or import.
    type: str
  parent:
    description: Id or aka of the parent resource.
    type: str
  title:
    description: Title of the file. Must match C(title) inside O(metadata) when both are given.
    type: str
  description:
    description: Description of the file.
    type: str
  data:
    description: JSON object holding the file data.
    type: json
  metadata:
    description: JSON object holding custom metadata.
    type: json
  tags:
    description: Tags to set on the file.
    type: dict
  akas:
    description: Additional akas for the file.
    type: list
    elements: str
"""

EXAMPLES = r"""
- name: Create a file under the Turbot root
  turbot.core.turbot_file:
    workspace: "https://example.cloud.turbot.com"
    parent: "tmod:@turbot/turbot#/"
    title: "Provider Test"
    description: "Managed by Ansible"
    data:
      foo: bar
    akas:
      - "provider-test-file"
    tags:
      env: test

- name: Remove the file
  turbot.core.turbot_file:
    workspace: "https://example.cloud.turbot.com"
    akas:
      - "provider-test-file"
    state: absent
"""

RETURN = r"""
id:
  description: Id of the file, or null once deleted.
  returned: always
  type: str
resource:
  description: Reconciled fields of the file, including the computed C(parent_akas).
  returned: when the file exists
  type: dict
commands:
  description: Changes planned or made by the module.
  returned: always
  type: list
"""

from ansible.module_utils.basic import AnsibleModule

from ansible_collections.turbot.core.plugins.module_utils.turbot.base_runner import (
    turbot_argument_spec,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.file_runner import (
    FILE_SCHEMA,
    FileRunner,
)

ARGUMENT_SPEC = turbot_argument_spec(
    parent=dict(type="str"),
    title=dict(type="str"),
    description=dict(type="str"),
    data=dict(type="json"),
    metadata=dict(type="json"),
    tags=dict(type="dict"),
    akas=dict(type="list", elements="str"),
)

RUNNER_CONTEXT = {
    "resource_type": "file",
    "schema": FILE_SCHEMA,
    "update_fields": [
        "parent",
        "title",
        "description",
        "data",
        "metadata",
        "tags",
        "akas",
    ],
    "force_new_fields": [],
}


def main():
    module = AnsibleModule(
        argument_spec=ARGUMENT_SPEC,
        required_if=[("state", "present", ["parent"])],
        supports_check_mode=True,
    )
    runner = FileRunner(module, RUNNER_CONTEXT)
    runner.run()


if __name__ == "__main__":
    main()
