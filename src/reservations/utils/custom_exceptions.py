class ConcurrentWriteError(Exception):
    """A guarded transactional write lost a race and may be retried."""

    def __init__(self, resource: str, identifier: str, reasons=None):
        self.resource = resource
        self.identifier = identifier
        self.reasons = list(reasons or [])

    def __str__(self):
        return f"concurrent write on {self.resource} '{self.identifier}'"
