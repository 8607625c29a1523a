#!/usr/bin/python

DOCUMENTATION = r"""
---
module: turbot_grant
short_description: Manage permission grants in a Turbot workspace
description:
  - Grant a permission type and level to an identity over a resource.
  - Grants cannot be modified; changing any reference replaces the grant.
  - Every reference may be given as an id or an aka.
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
    description: Whether the grant should exist.
    type: str
    default: present
    choices: [present, absent]
  id:
    description: Id of an existing grant to manage or import.
    type: str
  resource:
    description: Id or aka of the resource the grant applies to.
    type: str
  identity:
    description: Id or aka of the profile receiving the grant.
    type: str
  type:
    description: Id or aka of the permission type.
    type: str
  level:
    description: Id or aka of the permission level.
    type: str
"""

EXAMPLES = r"""
- name: Grant Turbot/Owner on the root to a user
  turbot.core.turbot_grant:
    workspace: "https://example.cloud.turbot.com"
    resource: "tmod:@turbot/turbot#/"
    identity: "{{ profile_id }}"
    type: "tmod:@turbot/turbot-iam#/permission/types/turbot"
    level: "tmod:@turbot/turbot-iam#/permission/levels/owner"
"""

RETURN = r"""
id:
  description: Id of the grant, or null once deleted.
  returned: always
  type: str
resource:
  description: Reconciled fields of the grant, including the computed alias lists.
  returned: when the grant exists
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
from ansible_collections.turbot.core.plugins.module_utils.turbot.grant_runner import (
    GRANT_INPUT_PROPERTIES,
    GRANT_SCHEMA,
    GrantRunner,
)

ARGUMENT_SPEC = turbot_argument_spec(
    resource=dict(type="str"),
    identity=dict(type="str"),
    type=dict(type="str"),
    level=dict(type="str"),
)

RUNNER_CONTEXT = {
    "resource_type": "grant",
    "schema": GRANT_SCHEMA,
    "update_fields": [],
    "force_new_fields": GRANT_INPUT_PROPERTIES,
}


def main():
    module = AnsibleModule(
        argument_spec=ARGUMENT_SPEC,
        required_if=[("state", "present", GRANT_INPUT_PROPERTIES)],
        supports_check_mode=True,
    )
    runner = GrantRunner(module, RUNNER_CONTEXT)
    runner.run()


if __name__ == "__main__":
    main()
