"""Handler modules for CRD resources."""

from .sas_generator import Requeue, SasGeneratorHandler

__all__ = ["Requeue", "SasGeneratorHandler"]
