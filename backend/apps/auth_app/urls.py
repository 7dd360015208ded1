"""
Authentication URLs
"""
from django.urls import re_path
from rest_framework_simplejwt.views import TokenRefreshView

from . import views

urlpatterns = [
    re_path(r'^register/?$', views.RegisterView.as_view(), name='register'),
    re_path(r'^login/?$', views.LoginView.as_view(), name='login'),
    re_path(r'^profile/?$', views.ProfileView.as_view(), name='profile'),
    re_path(
        r'^reset-password/admin-token/?$',
        views.AdminTokenPasswordResetView.as_view(),
        name='reset_password_admin_token',
    ),
    re_path(r'^token/refresh/?$', TokenRefreshView.as_view(), name='token_refresh'),
]
