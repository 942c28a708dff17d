"""API module for Pixum.

Structure:
- routers/: health probes and the artwork endpoints
- dependencies.py: AppContext access and path segment validation
- exception_handlers.py: domain exception -> HTTP response mapping
- security_headers.py: response header policy
"""
