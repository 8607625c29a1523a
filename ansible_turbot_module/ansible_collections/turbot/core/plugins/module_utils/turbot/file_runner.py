from ansible_collections.turbot.core.plugins.module_utils.turbot.base_runner import (
    BaseRunner,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.errors import (
    DataConflictError,
    JsonFormatError,
    NotFoundError,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.helpers import (
    format_json,
    json_string_to_map,
    map_to_json_string,
    property_map_from_json,
    remove_properties,
    suppress_if_aka_matches,
    suppress_if_akas_present,
    suppress_if_data_matches,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.resource_data import (
    ResourceData,
)

FILE_TYPE = "tmod:@turbot/turbot#/resource/types/file"

RESOURCE_PROPERTIES = ["parent", "type", "tags", "akas"]
FILE_PROPERTIES = ["parent", "tags", "akas"]
METADATA_PROPERTIES = ["title", "description"]

FILE_SCHEMA = [
    "parent",
    "parent_akas",
    "title",
    "description",
    "data",
    "metadata",
    "tags",
    "akas",
]


def get_file_update_properties() -> list:
    return remove_properties(RESOURCE_PROPERTIES, ["type"])


def build_data_update_properties(data: dict, allowed_properties: list) -> dict:
    """
    Restricts a data payload to the properties the update schema allows.
    An empty list of allowed properties leaves the payload untouched.
    """
    if not allowed_properties:
        return data
    return {key: value for key, value in data.items() if key in allowed_properties}


class FileRunner(BaseRunner):
    """
    Runner for Turbot file resources: a resource holding an arbitrary JSON
    `data` payload under a parent, with optional custom `metadata`, tags and
    akas.

    `title` and `description` may be given at the top level, inside
    `metadata`, or both. On write both locations are kept consistent; on read
    the remote metadata is trimmed back to what was configured so that
    repeated runs stay idempotent.
    """

    diff_suppress_funcs = {
        # The remote returns the parent id while the configuration usually holds an aka.
        "parent": suppress_if_aka_matches("parent_akas"),
        "data": suppress_if_data_matches,
        "metadata": suppress_if_data_matches,
        "akas": suppress_if_akas_present,
    }

    def derive_identity(self) -> str | None:
        """An existing file can be found through any of its configured akas."""
        for aka in self.module.params.get("akas") or []:
            if self.client.resource_exists(aka):
                return self.resolver.resolve_id(aka)
        return None

    def exists(self) -> bool:
        return self.client.resource_exists(self.data.id())

    def plan_creation(self) -> list:
        # Validate the payload up front so check mode reports conflicts too.
        self.build_file_input(FILE_PROPERTIES)
        return super().plan_creation()

    def plan_update(self) -> list:
        # The read has replaced local values with remote ones, so check the
        # configuration on its own.
        configured = ResourceData(self.context["schema"], self.module.params)
        self.build_file_input(get_file_update_properties(), configured)
        return super().plan_update()

    def create(self):
        input = self.build_file_input(FILE_PROPERTIES)
        input["type"] = FILE_TYPE

        turbot_metadata = self.client.create_resource(input)

        self.resolver.store_akas(turbot_metadata["parentId"], "parent_akas", self.data)
        self.data.set_id(turbot_metadata["id"])
        # Keep the payloads canonical so that key order never shows up as a change.
        self._store_formatted_payloads()
        return turbot_metadata

    def read(self):
        id = self.data.id()

        # Build the map of property name -> path for the configured data, so
        # that only those properties are fetched.
        properties = None
        metadata_config_properties = {}
        data_value, has_data = self.data.get_ok("data")
        if has_data:
            try:
                properties = property_map_from_json(data_value)
            except JsonFormatError as e:
                raise JsonFormatError(
                    f"error retrieving properties from resource data: {e}"
                ) from e
        metadata_value, has_metadata = self.data.get_ok("metadata")
        if has_metadata:
            try:
                metadata_config_properties = property_map_from_json(metadata_value)
            except JsonFormatError as e:
                raise JsonFormatError(
                    f"error retrieving properties from resource metadata: {e}"
                ) from e

        try:
            resource = self.client.read_resource(id, properties)
        except NotFoundError:
            self.data.set_id("")
            raise

        turbot = resource["turbot"]
        metadata_map = dict(turbot.get("custom") or {})
        for metadata_property in METADATA_PROPERTIES:
            if metadata_property not in metadata_map:
                continue
            # Mirror the remote value at the top level when configured there.
            if self.data.get_ok(metadata_property)[1]:
                self.data.set(metadata_property, metadata_map[metadata_property])
            # Drop keys the configured metadata does not ask for.
            if metadata_property not in metadata_config_properties:
                del metadata_map[metadata_property]

        self.resolver.store_akas(turbot["parentId"], "parent_akas", self.data)

        self.data.set("parent", turbot["parentId"])
        self.data.set("data", map_to_json_string(resource["data"]))
        self.data.set("metadata", map_to_json_string(metadata_map))
        self.data.set("tags", turbot.get("tags") or {})
        self.data.set("akas", list(turbot.get("akas") or []))

    def update(self):
        id = self.data.id()
        input = self.build_file_input(get_file_update_properties())

        allowed_properties = self.client.read_update_schema_properties(id)
        input["data"] = build_data_update_properties(
            input.get("data", {}), allowed_properties
        )
        input["id"] = id

        turbot_metadata = self.client.update_resource(input)

        self._store_formatted_payloads()
        custom = turbot_metadata.get("custom") or {}
        if "description" in custom:
            self.data.set("description", custom["description"])
        self.data.set("title", custom.get("title", self.data.get("title")))

        self.resolver.store_akas(turbot_metadata["parentId"], "parent_akas", self.data)
        return turbot_metadata

    def delete(self):
        self.client.delete_resource(self.data.id())
        self.data.set_id("")

    def build_file_input(self, properties: list, data: ResourceData = None) -> dict:
        """
        Builds the mutation input for a file from the local fields.

        `data` and `metadata` are parsed from JSON text. Top-level `title` and
        `description` are copied into metadata; when a value is also present in
        metadata the two must agree. A value given only in metadata is
        mirrored back to the top level.

        Raises:
            JsonFormatError: If `data` or `metadata` is not a JSON object.
            DataConflictError: If a top-level value disagrees with its metadata value.
        """
        data = data or self.data
        input = self.map_from_resource_data(properties, data)

        try:
            input["data"] = json_string_to_map(data.get("data"), "data")
        except JsonFormatError as e:
            raise JsonFormatError(f"error build resource mutation input, {e}") from e

        metadata_value, has_metadata = data.get_ok("metadata")
        metadata_map = {}
        if has_metadata:
            try:
                metadata_map = json_string_to_map(metadata_value, "metadata")
            except JsonFormatError as e:
                raise JsonFormatError(
                    f"error build resource mutation input, {e}"
                ) from e

        for metadata_property in METADATA_PROPERTIES:
            top_level_value, property_set = data.get_ok(metadata_property)
            if property_set:
                if metadata_property in metadata_map:
                    value = metadata_map[metadata_property]
                    if value != top_level_value:
                        raise DataConflictError(
                            f"error data mismatch, failed to pass different {metadata_property} "
                            f"as top level: {top_level_value} and metadata {metadata_property}: {value}"
                        )
                else:
                    metadata_map[metadata_property] = top_level_value
            elif metadata_property in metadata_map:
                data.set(metadata_property, metadata_map[metadata_property])

        if metadata_map:
            input["metadata"] = metadata_map
        return input

    def _store_formatted_payloads(self):
        self.data.set("data", format_json(self.data.get("data")))
        metadata, ok = self.data.get_ok("metadata")
        if ok:
            self.data.set("metadata", format_json(metadata))
