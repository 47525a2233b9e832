"""Error types shared by the driver runtime and its protocol plugins."""


class DriverError(Exception):
    """Base class for all driver errors."""

    default_message = "driver error"

    def __init__(self, message=None):
        super().__init__(self.default_message if message is None else message)


class InitLoggerError(DriverError):
    """The logger could not be set up."""

    default_message = "init logger error"


class NotSupportGetConnector(DriverError):
    """The protocol has no connector that can be fetched."""

    default_message = "the protocol does not support getting connector"


class NotSupportEncode(DriverError):
    """The protocol adapter cannot encode."""

    default_message = "the protocol adapter does not support encode functions"


class NotSupportDecode(DriverError):
    """The protocol adapter cannot decode."""

    default_message = "the protocol adapter does not support decode functions"


class ProtocolDataFormatError(DriverError):
    """Protocol data arrived in an unexpected shape."""

    default_message = "protocol data format error"


class LoadCoreConfigError(DriverError):
    """The core configuration could not be loaded."""

    default_message = "load core config error"


class ConnectorNotFound(DriverError):
    """No connector matches the request."""

    default_message = "connector not found error"


class NotSupportMode(DriverError):
    """The requested mode is not supported."""

    default_message = "not support mode error"


class UnsupportedWriteCommandRegisterType(DriverError):
    """The register type cannot be written."""

    default_message = "unsupport write command register type"


class DeviceNotFoundError(DriverError):
    """The device is unknown."""

    default_message = "device not found error"


class PointNotFoundError(DriverError):
    """The point is unknown."""

    default_message = "point not found error"