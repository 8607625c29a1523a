from ansible_collections.turbot.core.plugins.module_utils.turbot.base_runner import (
    BaseRunner,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.errors import (
    NotFoundError,
    TurbotApiError,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.helpers import (
    build_id,
    parse_id,
    suppress_if_aka_matches,
)

SMART_FOLDER_ATTACH_PROPERTIES = {
    "resource": "resource",
    "smart_folder": "smartFolders",
}

SMART_FOLDER_ATTACHMENT_SCHEMA = ["resource", "smart_folder", "resource_akas"]


class SmartFolderAttachmentRunner(BaseRunner):
    """
    Runner for the link between a smart folder and a resource.

    The attachment has no identifier of its own: its identity is the pair
    (smart folder, resource) encoded as `<smart_folder>_<resource>`. Linking is
    binary, so both fields are force-new and there is no update.
    """

    diff_suppress_funcs = {
        "resource": suppress_if_aka_matches("resource_akas"),
    }

    def derive_identity(self) -> str | None:
        smart_folder = self.module.params.get("smart_folder")
        resource = self.module.params.get("resource")
        if not (smart_folder and resource):
            return None
        return build_id(smart_folder, resource)

    def exists(self) -> bool:
        """
        Checks whether the resource is among the smart folder's attached
        resources, matching on either its id or any of its akas.
        """
        smart_folder_id, resource = parse_id(self.data.id())
        try:
            smart_folder = self.client.read_smart_folder(smart_folder_id)
        except TurbotApiError as e:
            raise TurbotApiError(
                f"error reading smart folder: {e}",
                status=e.status,
                url=e.url,
                errors=e.errors,
            ) from e

        attached = (smart_folder.get("attachedResources") or {}).get("items") or []
        for attached_resource in attached:
            turbot = attached_resource.get("turbot") or {}
            if resource == turbot.get("id"):
                return True
            if resource in (turbot.get("akas") or []):
                return True
        return False

    def create(self):
        resource = self.data.get("resource")
        smart_folder = self.data.get("smart_folder")

        result = self.client.create_smart_folder_attachment(self._build_input())

        self.resolver.store_akas(resource, "resource_akas", self.data)
        self.data.set_id(build_id(smart_folder, resource))
        self.data.set("resource", resource)
        self.data.set("smart_folder", smart_folder)
        return result

    def read(self):
        # Only called once the attachment is known to exist.
        smart_folder, resource = parse_id(self.data.id())

        try:
            turbot_resource = self.client.read_resource(resource)
        except NotFoundError:
            self.data.set_id("")
            raise
        self.resolver.store_akas(
            turbot_resource["turbot"]["id"], "resource_akas", self.data
        )
        self.data.set("resource", resource)
        self.data.set("smart_folder", smart_folder)

    def delete(self):
        self.client.delete_smart_folder_attachment(self._build_input())
        self.data.set_id("")

    def _build_input(self) -> dict:
        input = self.map_from_resource_data_with_property_map(
            SMART_FOLDER_ATTACH_PROPERTIES
        )
        # The API attaches a resource to a list of smart folders.
        if "smartFolders" in input:
            input["smartFolders"] = [input["smartFolders"]]
        return input
