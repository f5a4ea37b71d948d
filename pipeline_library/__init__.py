"""
Pipeline Library - HTTP/JSON management surface for data pipeline configurations.

Pipelines are identified by name, versioned by revision and paired with a
rule-definitions document holding metric alerts and data-quality rules.
"""

__version__ = "0.1.0"
