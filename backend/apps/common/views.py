"""
Fallback views
"""
from django.http import JsonResponse


def api_not_found(request, *args, **kwargs):
    """JSON 404 for any unmatched ``/api/`` route."""
    return JsonResponse(
        {'message': f'Cannot {request.method} {request.get_full_path()}'},
        status=404,
    )
