class ContractStudioError(Exception):
    """Base class for errors raised by the contract-studio core."""


class InvalidIndex(ContractStudioError, IndexError):
    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"Index {index} out of range [0, {length})")
        self.index = index
        self.length = length


class UnknownContract(ContractStudioError, KeyError):
    def __init__(self, name: str | None) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        if self.name is None:
            return "No contract selected"
        return f"Unknown contract: {self.name}"


class BackendError(ContractStudioError, RuntimeError):
    """The compiler backend is unavailable or crashed.

    Terminal for the request that raised it; recorded on the session as the
    worker error rather than reported as a diagnostic.
    """
