"""
This module contains the AkaResolver class, which looks up the alternate
identifiers ("akas") of workspace entities.

Turbot lets any entity be referenced either by its stable id or by one of its
akas. After every read, create or update, each field holding such a
reference gets a computed companion field holding the referenced entity's
full alias list, so a later comparison can treat the id and any aka as the
same value.
"""


class AkaResolver:
    """
    Resolves ids and akas to the entity's identity metadata.

    Results are cached for the lifetime of one module invocation only, so the
    same reference is fetched at most once per run.
    """

    def __init__(self, runner):
        """
        Args:
            runner: The runner that owns this resolver. Its client is used for lookups.
        """
        self.runner = runner
        self.cache = {}

    def lookup(self, value: str) -> dict:
        """
        Fetches `{"id": ..., "akas": [...]}` for an id or aka.

        Raises:
            NotFoundError: If no entity matches the value.
        """
        if value not in self.cache:
            resource = self.runner.client.read_resource(value)
            turbot = resource["turbot"]
            self.cache[value] = {
                "id": turbot.get("id"),
                "akas": list(turbot.get("akas") or []),
            }
        return self.cache[value]

    def resolve_id(self, value: str) -> str:
        return self.lookup(value)["id"]

    def store_akas(self, value: str, akas_key: str, data):
        """
        Loads the entity referenced by `value` and stores its akas into the
        computed field `akas_key` of `data`.
        """
        data.set(akas_key, self.lookup(value)["akas"])
