"""Phone number provisioning and lifecycle reconciliation for voice AI tenants."""
