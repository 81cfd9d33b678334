"""
Marker line parsing.

A marker line is the only thing the device says to us. Its format is
comma-separated key/value pairs surrounded by curly braces, ie:

    {foo=bar,name=ARandomName}

There is no escaping, so keys and values cannot contain ``,`` or ``=``.
"""

from typing import Dict


def parse_marker(line: str) -> Dict[str, str]:
    """
    Parse a marker line into a key/value dict.

    Pairs without an ``=``, or with an empty key, are dropped. When a key
    repeats, the last value wins. Anything not wrapped in braces gives ``{}``.
    """
    metadata: Dict[str, str] = {}
    if not (line.startswith("{") and line.endswith("}")):
        return metadata

    for pair in line[1:-1].split(","):
        separator = pair.find("=")
        if separator > 0:
            metadata[pair[:separator]] = pair[separator + 1 :]
    return metadata
