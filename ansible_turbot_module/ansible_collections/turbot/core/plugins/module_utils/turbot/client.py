"""
A thin GraphQL client for the Turbot workspace API, built on Ansible's
`fetch_url` so that proxy, certificate and timeout handling follow the
standard module options.

Every public method maps to exactly one query or mutation. Failures are
raised as `TurbotApiError` (or `NotFoundError`); no call is retried.
"""

import base64
import json

from ansible.module_utils.basic import AnsibleModule
from ansible.module_utils.urls import fetch_url

from ansible_collections.turbot.core.plugins.module_utils.turbot.errors import (
    NotFoundError,
    TurbotApiError,
    is_not_found,
)

GRAPHQL_PATH = "/api/latest/graphql"

TURBOT_METADATA_FIELDS = "id parentId akas tags custom title"

CREATE_RESOURCE = f"""
mutation CreateResource($input: CreateResourceInput!) {{
  resource: createResource(input: $input) {{
    turbot {{ {TURBOT_METADATA_FIELDS} }}
  }}
}}
"""

UPDATE_RESOURCE = f"""
mutation UpdateResource($input: UpdateResourceInput!) {{
  resource: updateResource(input: $input) {{
    turbot {{ {TURBOT_METADATA_FIELDS} }}
  }}
}}
"""

DELETE_RESOURCE = """
mutation DeleteResource($input: DeleteResourceInput!) {
  resource: deleteResource(input: $input) {
    turbot { id }
  }
}
"""

RESOURCE_EXISTS = """
query ResourceExists($id: ID!) {
  resource(id: $id) {
    turbot { id }
  }
}
"""

UPDATE_SCHEMA = """
query ResourceUpdateSchema($id: ID!) {
  resource(id: $id) {
    type { updateSchema }
  }
}
"""

CREATE_GRANT = """
mutation CreateGrant($input: CreateGrantInput!) {
  grant: createGrant(input: $input) {
    turbot { id }
  }
}
"""

READ_GRANT = """
query Grant($id: ID!) {
  grant(id: $id) {
    permissionTypeId
    permissionLevelId
    turbot { id profileId resourceId }
  }
}
"""

DELETE_GRANT = """
mutation DeleteGrant($input: DeleteGrantInput!) {
  grant: deleteGrant(input: $input) {
    turbot { id }
  }
}
"""

FIND_GRANTS = """
query Grants($filter: [String!]) {
  grants(filter: $filter) {
    items {
      turbot { id }
    }
  }
}
"""

READ_SMART_FOLDER = """
query SmartFolder($id: ID!) {
  smartFolder: resource(id: $id) {
    turbot { id akas }
    attachedResources {
      items {
        turbot { id akas }
      }
    }
  }
}
"""

ATTACH_SMART_FOLDERS = """
mutation AttachSmartFolders($input: AttachSmartFoldersInput!) {
  attachments: attachSmartFolders(input: $input) {
    turbot { id }
  }
}
"""

DETACH_SMART_FOLDERS = """
mutation DetachSmartFolders($input: DetachSmartFoldersInput!) {
  detachments: detachSmartFolders(input: $input) {
    turbot { id }
  }
}
"""


def build_read_resource_query(properties: dict | None) -> tuple[str, dict]:
    """
    Builds the resource read query. When a property map is given, each
    property is fetched individually through an alias so that only the
    configured part of the resource data is returned.

    Returns:
        The query text and a map of alias -> property name.
    """
    aliases = {}
    if properties:
        selections = []
        for index, (name, path) in enumerate(sorted(properties.items())):
            alias = f"p{index}"
            aliases[alias] = name
            selections.append(f"{alias}: get(path: {json.dumps(path)})")
        data_selection = "\n    ".join(selections)
    else:
        data_selection = "data"

    query = f"""
query Resource($id: ID!) {{
  resource(id: $id) {{
    {data_selection}
    turbot {{ {TURBOT_METADATA_FIELDS} }}
  }}
}}
"""
    return query, aliases


class TurbotClient:
    """Executes GraphQL operations against a Turbot workspace."""

    def __init__(self, module: AnsibleModule):
        self.module = module
        self.url = module.params["workspace"].rstrip("/") + GRAPHQL_PATH
        credentials = f"{module.params['access_key']}:{module.params['secret_key']}"
        self.headers = {
            "Authorization": "Basic "
            + base64.b64encode(credentials.encode()).decode(),
            "Content-Type": "application/json",
        }

    def execute(self, query: str, variables: dict | None = None) -> dict:
        """
        Sends a single GraphQL operation and returns its `data` member.

        Raises:
            NotFoundError: If the API reports that the target does not exist.
            TurbotApiError: For any other HTTP or GraphQL failure.
        """
        payload = self.module.jsonify({"query": query, "variables": variables or {}})
        self.module.debug(f"Turbot GraphQL request: {query.split('(')[0].strip()} {variables}")

        response, info = fetch_url(
            self.module,
            self.url,
            data=payload,
            headers=self.headers,
            method="POST",
            timeout=self.module.params.get("timeout") or 30,
        )
        status_code = info["status"]

        if status_code >= 400 or status_code == -1:
            error_body = info.get("body", b"")
            error_json = None
            error_details = "No detailed error message from API."
            if error_body:
                try:
                    error_json = json.loads(error_body)
                    error_details = f"API Response: {json.dumps(error_json, indent=2)}"
                except json.JSONDecodeError:
                    error_details = (
                        f"API Response (raw): {error_body.decode(errors='ignore')}"
                    )
            errors = error_json.get("errors") if isinstance(error_json, dict) else None
            message = (
                f"Request to {self.url} failed. Status: {status_code}. "
                f"Message: {info.get('msg')}. {error_details}"
            )
            error_cls = NotFoundError if status_code == 404 else TurbotApiError
            raise error_cls(message, status=status_code, url=self.url, errors=errors)

        body_content = response.read() if response else b""
        try:
            body = json.loads(body_content) if body_content else {}
        except json.JSONDecodeError:
            raise TurbotApiError(
                f"API returned a success status ({status_code}) but the response was not valid JSON.",
                status=status_code,
                url=self.url,
            )

        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(error.get("message", error)) for error in errors)
            error_cls = TurbotApiError
            if any(is_not_found(error.get("message", "")) for error in errors):
                error_cls = NotFoundError
            raise error_cls(messages, status=status_code, url=self.url, errors=errors)

        return body.get("data") or {}

    # --- Resources ---

    def create_resource(self, input: dict) -> dict:
        result = self.execute(CREATE_RESOURCE, {"input": input})
        return result["resource"]["turbot"]

    def read_resource(self, id: str, properties: dict | None = None) -> dict:
        """
        Reads a resource by id or aka.

        Returns:
            A dict with `data` (the resource data, limited to `properties` when
            given) and `turbot` (the identity metadata).
        """
        query, aliases = build_read_resource_query(properties)
        resource = self.execute(query, {"id": id}).get("resource")
        if not resource:
            raise NotFoundError(f"Resource '{id}' Not Found.", url=self.url)

        if aliases:
            data = {name: resource.get(alias) for alias, name in aliases.items()}
        else:
            data = resource.get("data") or {}
        return {"data": data, "turbot": resource.get("turbot") or {}}

    def update_resource(self, input: dict) -> dict:
        result = self.execute(UPDATE_RESOURCE, {"input": input})
        return result["resource"]["turbot"]

    def delete_resource(self, id: str):
        self.execute(DELETE_RESOURCE, {"input": {"id": id}})

    def resource_exists(self, id: str) -> bool:
        return self._exists(RESOURCE_EXISTS, "resource", id)

    def read_update_schema_properties(self, id: str) -> list:
        """
        Returns the data properties the update schema of the resource's type
        permits. An empty list means the schema does not restrict them.
        """
        resource = self.execute(UPDATE_SCHEMA, {"id": id}).get("resource") or {}
        schema = (resource.get("type") or {}).get("updateSchema") or {}
        if isinstance(schema, str):
            try:
                schema = json.loads(schema) if schema else {}
            except json.JSONDecodeError as e:
                raise TurbotApiError(
                    f"Update schema of resource '{id}' is not valid JSON: {e}",
                    url=self.url,
                )
        return list((schema.get("properties") or {}).keys())

    # --- Grants ---

    def create_grant(self, input: dict) -> dict:
        result = self.execute(CREATE_GRANT, {"input": input})
        return result["grant"]["turbot"]

    def read_grant(self, id: str) -> dict:
        grant = self.execute(READ_GRANT, {"id": id}).get("grant")
        if not grant:
            raise NotFoundError(f"Grant '{id}' Not Found.", url=self.url)
        return grant

    def delete_grant(self, id: str):
        self.execute(DELETE_GRANT, {"input": {"id": id}})

    def grant_exists(self, id: str) -> bool:
        return self._exists(READ_GRANT, "grant", id)

    def find_grant(
        self, resource_id: str, identity_id: str, type_id: str, level_id: str
    ) -> str | None:
        """Returns the id of the grant matching all four references, if any."""
        filters = [
            f"resourceId:{resource_id}",
            f"profileId:{identity_id}",
            f"permissionTypeId:{type_id}",
            f"permissionLevelId:{level_id}",
            "level:self",
        ]
        grants = self.execute(FIND_GRANTS, {"filter": filters}).get("grants") or {}
        items = grants.get("items") or []
        if len(items) > 1:
            self.module.warn(
                f"Multiple grants match resource '{resource_id}' and identity '{identity_id}'. Using the first one."
            )
        return items[0]["turbot"]["id"] if items else None

    # --- Smart folders ---

    def read_smart_folder(self, id: str) -> dict:
        smart_folder = self.execute(READ_SMART_FOLDER, {"id": id}).get("smartFolder")
        if not smart_folder:
            raise NotFoundError(f"Smart folder '{id}' Not Found.", url=self.url)
        return smart_folder

    def create_smart_folder_attachment(self, input: dict) -> dict:
        return self.execute(ATTACH_SMART_FOLDERS, {"input": input})

    def delete_smart_folder_attachment(self, input: dict):
        self.execute(DETACH_SMART_FOLDERS, {"input": input})

    def _exists(self, query: str, key: str, id: str) -> bool:
        try:
            result = self.execute(query, {"id": id})
        except NotFoundError:
            return False
        return bool(result.get(key))
