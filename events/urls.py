"""
URL routing for /events.
"""

from rest_framework.routers import SimpleRouter

from events.views import EventViewSet

router = SimpleRouter(trailing_slash="/?")
router.register(r"events", EventViewSet, basename="events")

urlpatterns = router.urls
