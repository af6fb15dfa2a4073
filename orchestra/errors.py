"""Error taxonomy for the agent engine."""


class OrchestraError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(OrchestraError, ValueError):
    """Invalid or missing configuration: credentials, routes, limits."""


class ToolValidationError(OrchestraError):
    """Tool input failed its input contract."""

    def __init__(self, tool_name: str, details: str):
        super().__init__(f"Invalid input for tool '{tool_name}': {details}")
        self.tool_name = tool_name
        self.details = details


class ToolNotFoundError(OrchestraError, LookupError):
    """The model asked for a tool that is not registered."""

    def __init__(self, tool_name: str, available: list[str]):
        names = ", ".join(available) if available else "(none)"
        super().__init__(f"Tool '{tool_name}' not found. Available tools: {names}")
        self.tool_name = tool_name
        self.available = available


class BackendError(OrchestraError, RuntimeError):
    """Inference backend failure (network, runtime, bad response)."""


class ModelNotFoundError(BackendError):
    """The local runtime does not have the requested model."""

    def __init__(self, model: str, details: str = ""):
        message = f"Model '{model}' not found"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)
        self.model = model


class RoutingValidationError(OrchestraError):
    """Classification output is not one of the router's intents."""

    def __init__(self, label: str, valid_intents: list[str]):
        super().__init__(
            f"'{label}' is not a valid intent. "
            f"Valid options: {', '.join(valid_intents)}"
        )
        self.label = label
        self.valid_intents = valid_intents


class StageError(OrchestraError):
    """A workflow stage failed; carries its 1-based position."""

    def __init__(self, stage_index: int, cause: BaseException, stage_name: str | None = None):
        label = f"stage {stage_index}"
        if stage_name:
            label = f"{label} ({stage_name})"
        super().__init__(f"Workflow failed at {label}: {cause}")
        self.stage_index = stage_index
        self.stage_name = stage_name
        self.cause = cause
