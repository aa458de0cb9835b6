from .constants import META_TRACE_ID_KEY
from .logging import bind_log_context, clear_log_context


class RequestLogContextMiddleware:
    """Bind request metadata to the logging context for the request lifecycle."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        clear_log_context()
        bind_log_context(**self._extract_context(request))

        try:
            response = self.get_response(request)
        finally:
            clear_log_context()

        return response

    def _extract_context(self, request) -> dict[str, str]:
        context: dict[str, str] = {}
        meta = getattr(request, "META", {})

        trace_id = meta.get(META_TRACE_ID_KEY)
        if trace_id:
            context["trace_id"] = str(trace_id).strip()

        path = getattr(request, "path", None)
        if path:
            context["request_path"] = path

        return context
