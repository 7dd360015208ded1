from typing import Callable

from django.http import HttpRequest, HttpResponse

# Headers Django's SecurityMiddleware and XFrameOptionsMiddleware do not set.
EXTRA_SECURITY_HEADERS = {
    "X-DNS-Prefetch-Control": "off",
    "X-XSS-Protection": "1; mode=block",
    "Permissions-Policy": "geolocation=(), camera=(), microphone=()",
}


class SecurityHeadersMiddleware:
    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        response = self.get_response(request)
        for header, value in EXTRA_SECURITY_HEADERS.items():
            response.setdefault(header, value)
        return response
