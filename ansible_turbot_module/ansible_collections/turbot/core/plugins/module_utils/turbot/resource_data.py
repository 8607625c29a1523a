from copy import deepcopy


class ResourceData:
    """
    Generic accessor over the local fields of a single managed entity.

    It keeps two layers: the configuration requested by the user (the module
    params, never modified) and the reconciled state written by the runner
    after each remote call. Reads fall back from state to configuration, so
    before anything has been fetched a handler sees exactly what was
    configured.
    """

    def __init__(self, schema: list[str], params: dict):
        """
        Args:
            schema: The names of every field the handler owns, computed ones included.
            params: The module params holding the configured values.
        """
        self.schema = list(schema)
        self._config = {key: deepcopy(params.get(key)) for key in self.schema}
        self._state = {}
        self._id = params.get("id") or ""

    def id(self) -> str:
        return self._id

    def set_id(self, value: str | None):
        """Assigns local identity. An empty value clears it."""
        self._id = value or ""

    def get(self, key: str):
        self._check_key(key)
        if key in self._state:
            return self._state[key]
        return self._config[key]

    def get_ok(self, key: str) -> tuple:
        """
        Returns the value and whether it is set. A value counts as set only when
        it is present and not empty, so an empty string, list or map is
        treated the same as an omitted field.
        """
        value = self.get(key)
        if value is None:
            return value, False
        if isinstance(value, (str, list, dict)) and not value:
            return value, False
        return value, True

    def config(self, key: str):
        """Returns the configured value only, ignoring reconciled state."""
        self._check_key(key)
        return self._config[key]

    def set(self, key: str, value):
        self._check_key(key)
        self._state[key] = value

    def apply_config(self):
        """
        Discards reconciled values for every configured field, so that a write
        sends the desired configuration rather than what was last read.
        Computed fields keep their state.
        """
        for key, value in self._config.items():
            if value is not None:
                self._state.pop(key, None)

    def to_dict(self) -> dict:
        snapshot = {"id": self._id or None}
        for key in self.schema:
            snapshot[key] = self.get(key)
        return snapshot

    def _check_key(self, key: str):
        if key not in self._config:
            raise KeyError(f"Unknown field '{key}'.")
