class RadarError(Exception):
    pass


class DataUnavailable(RadarError):
    """An upstream call failed, timed out or returned nothing usable."""


class MalformedTransaction(RadarError):
    """Transaction lacks the fields needed to describe a new pool."""


class ConfigurationError(RadarError):
    pass
