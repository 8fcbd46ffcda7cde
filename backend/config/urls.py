"""
URL configuration for backend project.

Every app mounts its function views under api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Merchandising Operations Admin Panel"
admin.site.site_title = "Merchandising Operations Admin Portal"
admin.site.index_title = "Welcome to the Merchandising Operations Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.parties.urls')),
    path('api/v1/', include('backend.purchasing.urls')),
    path('api/v1/', include('backend.logistics.urls')),
    path('api/v1/', include('backend.quality.urls')),
    path('api/v1/', include('backend.projections.urls')),
    path('api/v1/', include('backend.capacity.urls')),
    path('api/v1/', include('backend.reports.urls')),
    path('api/v1/', include('backend.skus.urls')),
    path('api/v1/', include('backend.imports.urls')),
]
