"""
Email package.

Modules:
- core: send_email over SMTP

Order email templates live with the service that owns the data
(services/store_service/templates.py).
"""
