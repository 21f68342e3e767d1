class MetricsQueryError(RuntimeError):
    """A dashboard aggregation failed in the data store. Carries no partial result."""

    def __init__(self, operation: str, message: str = "metrics query failed"):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class MetricsQueryTimeout(MetricsQueryError):
    def __init__(self, operation: str, timeout: float):
        super().__init__(operation, f"timed out after {timeout:g}s")
        self.timeout = timeout
