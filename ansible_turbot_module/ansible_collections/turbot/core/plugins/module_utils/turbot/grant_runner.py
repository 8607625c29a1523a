from ansible_collections.turbot.core.plugins.module_utils.turbot.base_runner import (
    BaseRunner,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.errors import (
    NotFoundError,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.helpers import (
    suppress_if_aka_matches,
)

# NOTE: the field names map one-to-one onto the createGrant input properties.
GRANT_INPUT_PROPERTIES = ["identity", "type", "level", "resource"]

# Each reference field and the computed field holding the referenced entity's akas.
GRANT_AKAS_FIELDS = {
    "resource": "resource_akas",
    "identity": "identity_akas",
    "type": "permission_type_akas",
    "level": "permission_level_akas",
}

GRANT_SCHEMA = GRANT_INPUT_PROPERTIES + list(GRANT_AKAS_FIELDS.values())


class GrantRunner(BaseRunner):
    """
    Runner for grants: the assignment of a permission type and level to an
    identity over a resource.

    Grants are immutable. Every field is force-new, so a real difference in
    any reference plans a replacement instead of an update.
    """

    diff_suppress_funcs = {
        # The remote returns ids while the configuration usually holds akas.
        field: suppress_if_aka_matches(akas_field)
        for field, akas_field in GRANT_AKAS_FIELDS.items()
    }

    def derive_identity(self) -> str | None:
        """
        Looks up an existing grant matching all four configured references,
        so that repeated runs do not create duplicates.
        """
        values = {field: self.module.params.get(field) for field in GRANT_INPUT_PROPERTIES}
        if not all(values.values()):
            return None
        return self.client.find_grant(
            resource_id=self.resolver.resolve_id(values["resource"]),
            identity_id=self.resolver.resolve_id(values["identity"]),
            type_id=self.resolver.resolve_id(values["type"]),
            level_id=self.resolver.resolve_id(values["level"]),
        )

    def exists(self) -> bool:
        return self.client.grant_exists(self.data.id())

    def create(self):
        input = self.map_from_resource_data(GRANT_INPUT_PROPERTIES)
        turbot_metadata = self.client.create_grant(input)

        for field, akas_field in GRANT_AKAS_FIELDS.items():
            self.resolver.store_akas(self.data.get(field), akas_field, self.data)

        self.data.set_id(turbot_metadata["id"])
        return turbot_metadata

    def read(self):
        try:
            grant = self.client.read_grant(self.data.id())
        except NotFoundError:
            self.data.set_id("")
            raise

        turbot = grant["turbot"]
        self.data.set("level", grant["permissionLevelId"])
        self.data.set("type", grant["permissionTypeId"])
        self.data.set("identity", turbot["profileId"])
        self.data.set("resource", turbot["resourceId"])

        for field, akas_field in GRANT_AKAS_FIELDS.items():
            self.resolver.store_akas(self.data.get(field), akas_field, self.data)

    def delete(self):
        self.client.delete_grant(self.data.id())
        self.data.set_id("")
