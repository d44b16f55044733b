"""Utility functions for the SAS Operator."""
