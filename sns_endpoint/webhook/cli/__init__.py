"""Command-line options for the SNS endpoint example program."""

from .models import EndpointServerCliOptions
from .options import _parse_args

__all__ = ["EndpointServerCliOptions", "_parse_args"]
