"""HAF REST clients -- block explorer (HAFBE) and HAF-SQL."""

from hivewatch.haf.hafbe import HafbeClient
from hivewatch.haf.hafsql import HafSqlClient

__all__ = ["HafbeClient", "HafSqlClient"]
