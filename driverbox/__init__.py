"""Edge device driver core: configuration, core cache, device shadow, value conversion and Modbus codecs."""

__version__ = "0.2.0"