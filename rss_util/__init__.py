"""
RSS Util Backend

Local, file-backed storage for the RSS Util reader application.
Provides the JSON document store, data mirror, secret vault and schema migrations.
"""

__version__ = "1.4.0"
