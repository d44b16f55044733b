"""SAS token operator: keeps SasGenerator resources supplied with fresh container SAS tokens."""

__version__ = "0.1.0"
