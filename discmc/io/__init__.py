from .config_file import (
    ConfigurationFormatError,
    format_configuration,
    parse_configuration,
    read_configuration,
    write_configuration,
)
from .metrics import MetricsWriter
