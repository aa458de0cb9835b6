"""Shared HTTP header and request metadata constants."""

# Canonical header names
X_TRACE_ID_HEADER = "X-Trace-ID"

# Django request.META keys
META_TRACE_ID_KEY = "HTTP_X_TRACE_ID"
