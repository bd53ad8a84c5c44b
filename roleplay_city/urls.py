"""URL routing for the establishment API.


The /api/ namespace exposes balances, requests, panels and the roulette;
/admin/ is Django's admin for inspecting rows during play-tests.
"""

from django.contrib import admin
from django.urls import path, include


urlpatterns = [
	path("admin/", admin.site.urls),
	path("api/", include("api.urls")),
]
