"""CertLogic business-rule validation for digital health certificates."""
