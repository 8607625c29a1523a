from abc import abstractmethod

from ansible.module_utils.basic import AnsibleModule, env_fallback

from ansible_collections.turbot.core.plugins.module_utils.turbot.client import (
    TurbotClient,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.command import (
    Command,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.errors import (
    TurbotError,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.resolver import (
    AkaResolver,
)
from ansible_collections.turbot.core.plugins.module_utils.turbot.resource_data import (
    ResourceData,
)


def turbot_argument_spec(**options) -> dict:
    """
    Builds the argument spec shared by all Turbot modules: the workspace
    connection options (each with an environment fallback), the desired
    `state` and an optional `id` naming an existing entity. Module-specific
    options are merged in from `options`.
    """
    spec = dict(
        workspace=dict(
            type="str", required=True, fallback=(env_fallback, ["TURBOT_WORKSPACE"])
        ),
        access_key=dict(
            type="str",
            required=True,
            no_log=False,
            fallback=(env_fallback, ["TURBOT_ACCESS_KEY"]),
        ),
        secret_key=dict(
            type="str",
            required=True,
            no_log=True,
            fallback=(env_fallback, ["TURBOT_SECRET_KEY"]),
        ),
        validate_certs=dict(type="bool", default=True),
        timeout=dict(type="int", default=30),
        state=dict(type="str", default="present", choices=["present", "absent"]),
        id=dict(type="str"),
    )
    spec.update(options)
    return spec


class BaseRunner:
    """
    Abstract base class for all Turbot module runners.

    A runner owns the lifecycle handlers of one entity kind (create, read,
    update, delete, exists and import) and orchestrates them in a two-phase
    "plan and execute" workflow using the Command pattern. Local fields are
    held in a `ResourceData` accessor; references given as id-or-aka are
    resolved through an `AkaResolver`.

    Required context keys:
    - `resource_type` (str): A human-readable name used in messages.
    - `schema` (list): Every field the handler owns, computed ones included.

    Optional context keys:
    - `update_fields` (list): Fields that can be changed in place.
    - `force_new_fields` (list): Fields whose change requires a replacement.
    """

    # Maps a field name to a predicate `(key, old, new, data) -> bool` deciding
    # whether a difference between configured and reconciled values is real.
    diff_suppress_funcs: dict = {}

    def __init__(self, module: AnsibleModule, context: dict, client=None):
        """
        Initializes the runner.

        Args:
            module: The AnsibleModule instance.
            context: A dictionary containing configuration for the runner.
            client: An optional API client; one is built from the module params otherwise.
        """
        self.module = module
        self.context = context
        self.client = client or TurbotClient(module)
        self.resolver = AkaResolver(self)
        self.data = ResourceData(context["schema"], module.params)
        self.has_changed = False
        self.found = False
        self.plan = []

    @abstractmethod
    def create(self):
        """Creates the entity from the configured fields and assigns its id."""
        pass

    @abstractmethod
    def read(self):
        """
        Reconciles the remote entity into local state. A remote "not found"
        must clear the local id before the error propagates.
        """
        pass

    @abstractmethod
    def delete(self):
        """Deletes the entity and clears the local id."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Checks whether the entity behind the local id still exists."""
        pass

    def update(self):
        raise TurbotError(
            f"{self.context['resource_type'].capitalize()} does not support in-place updates."
        )

    def derive_identity(self) -> str | None:
        """
        Derives the identity of an already existing entity from its configured
        fields when no explicit `id` is given. Runners override this where the
        configuration is enough to find the entity.
        """
        return None

    def import_resource(self, identity: str) -> dict:
        """
        Populates all local fields for an externally supplied identity by
        performing a read.
        """
        self.data.set_id(identity)
        self.read()
        return self.data.to_dict()

    def run(self):
        """
        The universal `run` method for all runners.

        Any `TurbotError` raised by a handler is reported as a module failure
        here; nothing else in the runner calls `fail_json` for remote errors.
        """
        try:
            self._run()
        except TurbotError as e:
            self.module.fail_json(msg=str(e), id=self.data.id() or None, **e.details)

    def _run(self):
        # Step 1: Determine the identity of the entity and whether it exists.
        identity = self.module.params.get("id") or self.derive_identity()
        self.data.set_id(identity)
        if identity:
            if self.exists():
                self.import_resource(identity)
                self.found = True
            else:
                if self.module.params.get("id"):
                    self.module.warn(
                        f"{self.context['resource_type'].capitalize()} '{identity}' no longer exists."
                    )
                self.data.set_id("")

        # Step 2: Plan the changes from the desired state.
        state = self.module.params["state"]
        if self.found:
            if state == "present":
                self.plan = self.plan_update()
            elif state == "absent":
                self.plan = self.plan_deletion()
        elif state == "present":
            self.plan = self.plan_creation()

        # Step 3: Handle Check Mode.
        if self.module.check_mode:
            self.handle_check_mode(self.plan)
            return

        # Step 4: Execute the plan and exit with the final state.
        self.execute_change_plan(self.plan)
        self.exit(plan=self.plan)

    def plan_creation(self) -> list:
        return [
            Command(
                self,
                self.create,
                command_type="create",
                description=f"Create new {self.context['resource_type']}",
                data=self.configured_fields(),
            )
        ]

    def plan_update(self) -> list:
        """
        Compares the configuration against the reconciled state. A change to a
        force-new field plans a replacement; any other change plans an in-place
        update. No command is planned when nothing differs.
        """
        changes = self.diff_fields()
        if not changes:
            return []

        force_new_fields = self.context.get("force_new_fields", [])
        if any(change["param"] in force_new_fields for change in changes):
            return [
                Command(
                    self,
                    self.replace,
                    command_type="replace",
                    description=f"Replace {self.context['resource_type']} '{self.data.id()}'",
                    data={"changes": changes},
                )
            ]
        return [
            Command(
                self,
                self.apply_update,
                command_type="update",
                description=f"Update attributes of {self.context['resource_type']} '{self.data.id()}'",
                data={"changes": changes},
            )
        ]

    def plan_deletion(self) -> list:
        return [
            Command(
                self,
                self.delete,
                command_type="delete",
                description=f"Delete {self.context['resource_type']} '{self.data.id()}'",
            )
        ]

    def apply_update(self):
        self.data.apply_config()
        return self.update()

    def replace(self):
        """Deletes the existing entity, then creates it from the configuration."""
        self.delete()
        self.data.apply_config()
        return self.create()

    def diff_fields(self) -> list:
        """
        Returns a structured list of `{'param', 'old', 'new'}` changes between
        the configured values and the reconciled state. Fields the user did
        not configure are never reported as changed.
        """
        fields = self.context.get("update_fields", []) + self.context.get(
            "force_new_fields", []
        )
        changes = []
        for field in fields:
            new_value = self.data.config(field)
            if new_value is None:
                continue
            old_value = self.data.get(field)
            suppress = self.diff_suppress_funcs.get(field)
            if suppress:
                if suppress(field, old_value, new_value, self.data):
                    continue
            elif new_value == old_value:
                continue
            changes.append({"param": field, "old": old_value, "new": new_value})
        return changes

    def configured_fields(self) -> dict:
        return {
            field: self.data.config(field)
            for field in self.context["schema"]
            if self.data.config(field) is not None
        }

    def map_from_resource_data(self, properties: list, data: ResourceData = None) -> dict:
        """Builds a mutation input from every listed field that is set."""
        data = data or self.data
        input = {}
        for prop in properties:
            value, ok = data.get_ok(prop)
            if ok:
                input[prop] = value
        return input

    def map_from_resource_data_with_property_map(self, property_map: dict) -> dict:
        """
        Builds a mutation input from the set fields, renaming each field to
        its API property name.
        """
        input = {}
        for field, api_name in property_map.items():
            value, ok = self.data.get_ok(field)
            if ok:
                input[api_name] = value
        return input

    def execute_change_plan(self, plan: list):
        if not plan:
            return

        self.has_changed = True
        for command in plan:
            command.execute()

    def handle_check_mode(self, plan: list):
        """
        Reports the predicted changes from a change plan and exits.
        """
        if plan:
            self.has_changed = True
        self.exit(plan=plan)

    def exit(self, plan: list | None = None):
        """
        Formats the final response for Ansible and exits the module.
        """
        commands = [cmd.serialize_request() for cmd in plan] if plan else []
        identity = self.data.id() or None
        self.module.exit_json(
            changed=self.has_changed,
            id=identity,
            resource=self.data.to_dict() if identity else None,
            commands=commands,
        )
