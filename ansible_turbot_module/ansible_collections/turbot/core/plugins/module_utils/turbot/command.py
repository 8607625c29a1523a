from typing import Any, Callable, Dict


class Command:
    """
    A self-contained object representing a single, atomic change to the workspace.

    This class encapsulates the runner operation that performs a mutation along
    with the input it sends, so that a change plan can be reported in check
    mode without being executed. It is the core of the "plan-and-execute"
    workflow.
    """

    def __init__(
        self,
        runner,
        operation: Callable[[], Any],
        command_type: str,
        description: str,
        data: Dict[str, Any] | None = None,
    ):
        """
        Initializes the command.

        Args:
            runner: The runner instance that will execute this command.
            operation: The bound runner method performing the mutation (e.g. `runner.create`).
            command_type (str): The logical type of command ('create', 'update',
                                'delete', 'replace').
            description (str): A human-readable summary of the command's purpose.
            data (dict, optional): The mutation input, for reporting.
        """
        self.runner = runner
        self.operation = operation
        self.command_type = command_type
        self.description = description
        self.data = data
        self.result = None

    def execute(self) -> Any:
        """
        Executes the command by invoking the runner operation.

        Returns:
            Whatever the operation returns.
        """
        self.result = self.operation()
        return self.result

    def serialize_request(self) -> dict:
        """
        Generates a serializable dictionary describing the change this command
        makes. This is used for the module's `commands` output.
        """
        serialized: dict[str, str | dict] = {
            "type": self.command_type,
            "resource_type": self.runner.context["resource_type"],
            "description": self.description,
        }
        if self.data:
            serialized["input"] = self.data

        return serialized
