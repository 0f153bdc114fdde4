class GasReportError(Exception):
    """Base class for every error the report run raises on purpose."""


class DeploymentNotFoundError(GasReportError):
    """A contract has no usable artifact or no deployment on the target network."""


class RpcError(GasReportError):
    """The node could not be reached or returned something unusable."""


class DecodeError(GasReportError):
    """Calldata did not match any function in the contract ABI."""


class ReportWriteError(GasReportError):
    """The CSV report could not be written."""
