#!/usr/bin/python

DOCUMENTATION = r"""
---
module: turbot_smart_folder_attachment
short_description: Attach a resource to a Turbot smart folder
description:
  - Attach or detach a resource and a smart folder.
  - The attachment is identified by C(<smart_folder>_<resource>).
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
    description: Whether the attachment should exist.
    type: str
    default: present
    choices: [present, absent]
  id:
    description:
      - Identity of an existing attachment, C(<smart_folder>_<resource>).
      - The smart folder id must not contain an underscore.
    type: str
  resource:
    description: Id or aka of the resource to attach.
    type: str
  smart_folder:
    description:
      - Id or aka of the smart folder.
      - The value becomes the first part of the attachment identity, so it must not contain an underscore.
    type: str
"""

EXAMPLES = r"""
- name: Attach an AWS account to a smart folder
  turbot.core.turbot_smart_folder_attachment:
    workspace: "https://example.cloud.turbot.com"
    smart_folder: "{{ smart_folder_id }}"
    resource: "arn:aws:::123456789012"
"""

RETURN = r"""
id:
  description: Identity of the attachment, or null once detached.
  returned: always
  type: str
resource:
  description: Fields of the attachment, including the computed C(resource_akas).
  returned: when the attachment exists
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
from ansible_collections.turbot.core.plugins.module_utils.turbot.smart_folder_attachment_runner import (
    SMART_FOLDER_ATTACHMENT_SCHEMA,
    SmartFolderAttachmentRunner,
)

ARGUMENT_SPEC = turbot_argument_spec(
    resource=dict(type="str"),
    smart_folder=dict(type="str"),
)

RUNNER_CONTEXT = {
    "resource_type": "smart folder attachment",
    "schema": SMART_FOLDER_ATTACHMENT_SCHEMA,
    "update_fields": [],
    "force_new_fields": ["resource", "smart_folder"],
}


def main():
    module = AnsibleModule(
        argument_spec=ARGUMENT_SPEC,
        required_one_of=[("id", "resource")],
        required_together=[("resource", "smart_folder")],
        supports_check_mode=True,
    )
    runner = SmartFolderAttachmentRunner(module, RUNNER_CONTEXT)
    runner.run()


if __name__ == "__main__":
    main()
