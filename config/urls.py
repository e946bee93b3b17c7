"""
Root URL configuration.
Resources are mounted at the root: /auth, /users, /transactions, /promotions, /events.
Every route accepts an optional trailing slash, so no redirect is needed.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.urls import include, path

urlpatterns = [
    path("auth/", include("users.auth_urls")),
    path("", include("users.urls")),
    path("", include("loyalty.urls")),
    path("", include("events.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
