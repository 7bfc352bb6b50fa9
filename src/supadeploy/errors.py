"""Domain errors for supadeploy."""


class ProvisionError(RuntimeError):
    """Raised when provisioning cannot continue safely."""
