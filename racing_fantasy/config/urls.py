"""
URL configuration for the racing fantasy project.

The engine is driven by Prefect flows and management commands; the only
web surface is the Django admin used by league commissioners.
"""
from django.contrib import admin
from django.urls import path

urlpatterns = [
    path('admin/', admin.site.urls),
]
