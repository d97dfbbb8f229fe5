"""Extract required modules from a module-info.java file."""

import re

REQUIRES_PATTERN = re.compile(r"requires\s*(?:transitive)?\s+([\w.]+)\s*;")


def parse_module_info(source: str) -> list[str]:
    """Return the modules named by 'requires' directives, in order.

    Args:
        source: Contents of a module-info.java file.

    Returns:
        Module names, e.g. ['org.slf4j', 'java.sql'].
    """
    return REQUIRES_PATTERN.findall(source)


__all__ = ["REQUIRES_PATTERN", "parse_module_info"]
