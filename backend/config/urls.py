"""
URL Configuration for the practice API
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path, re_path

from apps.common.views import api_not_found

urlpatterns = [
    path('admin/', admin.site.urls),

    # API endpoints
    path('api/auth/', include('apps.auth_app.urls')),
    path('api/', include('apps.auth_app.user_urls')),
    path('api/', include('apps.activity.urls')),
    path('api/', include('apps.matters.urls')),
    path('api/', include('apps.cases.urls')),
    path('api/', include('apps.documents.urls')),
    path('api/', include('apps.tasks.urls')),
    path('api/', include('apps.invoices.urls')),
    path('api/', include('apps.notices.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

# Debug toolbar (only in development)
if settings.DEBUG and 'debug_toolbar' in settings.INSTALLED_APPS:
    import debug_toolbar

    urlpatterns = [
        path('__debug__/', include(debug_toolbar.urls)),
    ] + urlpatterns

# Anything else under /api/ is a JSON 404
urlpatterns += [
    re_path(r'^api/.*$', api_not_found),
]
