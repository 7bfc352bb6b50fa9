"""
supadeploy - Self-hosted Supabase on DigitalOcean provisioning tool
"""

__version__ = "0.1.0"

from .core import ProvisionError, SupabaseProvisioner

__all__ = ["SupabaseProvisioner", "ProvisionError"]
